"""The closed set of repository settings that preferences can enforce.

Each setting appears under three names: the GraphQL field used when listing
repositories, the attribute on :class:`~repoconform.preferences.PreferenceSet`
and :class:`~repoconform.conformance.RepositorySnapshot`, and the REST field
accepted by ``PATCH /repos/{owner}/{repo}``. :data:`SETTING_SPECS` is the only
place where those names are tied together.
"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing as typ


class Setting(enum.StrEnum):
    """Repository settings, valued by their GraphQL field names."""

    AUTO_MERGE_ALLOWED = "autoMergeAllowed"
    DELETE_BRANCH_ON_MERGE = "deleteBranchOnMerge"
    FORKING_ALLOWED = "forkingAllowed"
    HAS_ISSUES_ENABLED = "hasIssuesEnabled"
    HAS_PROJECTS_ENABLED = "hasProjectsEnabled"
    HAS_WIKI_ENABLED = "hasWikiEnabled"
    MERGE_COMMIT_ALLOWED = "mergeCommitAllowed"
    REBASE_MERGE_ALLOWED = "rebaseMergeAllowed"
    SQUASH_MERGE_ALLOWED = "squashMergeAllowed"


@dataclasses.dataclass(frozen=True, slots=True)
class SettingSpec:
    """Names and labels for a single :class:`Setting`."""

    setting: Setting
    attribute: str
    rest_field: str
    label: str

    @property
    def graphql_field(self) -> str:
        """Return the GraphQL field selected when listing repositories."""
        return self.setting.value


def _spec(setting: Setting, attribute: str, rest_field: str, label: str) -> SettingSpec:
    return SettingSpec(
        setting=setting, attribute=attribute, rest_field=rest_field, label=label
    )


SETTING_SPECS: typ.Mapping[Setting, SettingSpec] = types.MappingProxyType(
    {
        Setting.AUTO_MERGE_ALLOWED: _spec(
            Setting.AUTO_MERGE_ALLOWED,
            "auto_merge_allowed",
            "allow_auto_merge",
            "Allow auto-merge",
        ),
        Setting.DELETE_BRANCH_ON_MERGE: _spec(
            Setting.DELETE_BRANCH_ON_MERGE,
            "delete_branch_on_merge",
            "delete_branch_on_merge",
            "Delete head branches on merge",
        ),
        Setting.FORKING_ALLOWED: _spec(
            Setting.FORKING_ALLOWED,
            "forking_allowed",
            "allow_forking",
            "Allow forking (only enforceable for org-owned repositories)",
        ),
        Setting.HAS_ISSUES_ENABLED: _spec(
            Setting.HAS_ISSUES_ENABLED,
            "has_issues_enabled",
            "has_issues",
            "Issues enabled",
        ),
        Setting.HAS_PROJECTS_ENABLED: _spec(
            Setting.HAS_PROJECTS_ENABLED,
            "has_projects_enabled",
            "has_projects",
            "Projects enabled",
        ),
        Setting.HAS_WIKI_ENABLED: _spec(
            Setting.HAS_WIKI_ENABLED,
            "has_wiki_enabled",
            "has_wiki",
            "Wiki enabled",
        ),
        Setting.MERGE_COMMIT_ALLOWED: _spec(
            Setting.MERGE_COMMIT_ALLOWED,
            "merge_commit_allowed",
            "allow_merge_commit",
            "Allow merge commits",
        ),
        Setting.REBASE_MERGE_ALLOWED: _spec(
            Setting.REBASE_MERGE_ALLOWED,
            "rebase_merge_allowed",
            "allow_rebase_merge",
            "Allow rebase merging",
        ),
        Setting.SQUASH_MERGE_ALLOWED: _spec(
            Setting.SQUASH_MERGE_ALLOWED,
            "squash_merge_allowed",
            "allow_squash_merge",
            "Allow squash merging",
        ),
    }
)


def spec_for(setting: Setting | str) -> SettingSpec:
    """Return the :class:`SettingSpec` for a setting or its GraphQL name.

    Raises
    ------
    ValueError
        If ``setting`` is not one of the recognised settings.

    """
    return SETTING_SPECS[Setting(setting)]


def parse_setting(name: str) -> Setting:
    """Resolve a GraphQL name (``hasWikiEnabled``) or attribute (``has_wiki_enabled``).

    Raises
    ------
    ValueError
        If ``name`` matches neither form.

    """
    for spec in SETTING_SPECS.values():
        if name in {spec.setting.value, spec.attribute}:
            return spec.setting
    msg = f"unknown repository setting: {name!r}"
    raise ValueError(msg)


__all__ = ["SETTING_SPECS", "Setting", "SettingSpec", "parse_setting", "spec_for"]
