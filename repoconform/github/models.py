"""Repository data returned by the GitHub session."""

from __future__ import annotations

import dataclasses

import msgspec

from repoconform.settings import Setting, spec_for


class RepositorySnapshot(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Point-in-time state of one owned repository.

    Every setting is present; a snapshot is never partial. Field names on
    the wire match the GraphQL selection (``hasWikiEnabled`` and so on).
    """

    id: str
    name: str
    auto_merge_allowed: bool
    delete_branch_on_merge: bool
    forking_allowed: bool
    has_issues_enabled: bool
    has_projects_enabled: bool
    has_wiki_enabled: bool
    merge_commit_allowed: bool
    rebase_merge_allowed: bool
    squash_merge_allowed: bool

    def value_of(self, setting: Setting) -> bool:
        """Return the current value of ``setting``."""
        return getattr(self, spec_for(setting).attribute)


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryPage:
    """One page of the owned-repositories connection."""

    nodes: tuple[RepositorySnapshot, ...]
    has_next_page: bool
    end_cursor: str | None
