"""In-memory GitHub session and snapshot builders for tests."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

import msgspec

from repoconform.github import PAGE_SIZE, RepositoryPage, RepositorySnapshot
from repoconform.settings import SETTING_SPECS

_REST_TO_ATTRIBUTE = {spec.rest_field: spec.attribute for spec in SETTING_SPECS.values()}


def make_snapshot(repo_id: str, name: str, **overrides: bool) -> RepositorySnapshot:
    """Build a snapshot with every setting enabled unless overridden."""
    values: dict[str, typ.Any] = {
        spec.attribute: True for spec in SETTING_SPECS.values()
    }
    values.update(overrides)
    return RepositorySnapshot(id=repo_id, name=name, **values)


def make_snapshots(count: int) -> list[RepositorySnapshot]:
    """Build ``count`` distinct snapshots named ``repo-0000`` onwards."""
    return [make_snapshot(f"R_{index}", f"repo-{index:04d}") for index in range(count)]


class FakeRepositoryClient:
    """Serve repositories page by page and record settings writes.

    Successful writes are applied to the stored snapshots so a later listing
    reflects them, like the real API.
    """

    def __init__(  # noqa: PLR0913
        self,
        repositories: cabc.Iterable[RepositorySnapshot] = (),
        *,
        login: str = "octocat",
        page_size: int = PAGE_SIZE,
        failures: cabc.Mapping[str, Exception] | None = None,
        login_error: Exception | None = None,
        listing_error_on_page: tuple[int, Exception] | None = None,
        write_delay: float = 0.0,
    ) -> None:
        self._repositories = {repo.name: repo for repo in repositories}
        self._order = list(self._repositories)
        self._login = login
        self._page_size = page_size
        self._failures = dict(failures or {})
        self._login_error = login_error
        self._listing_error_on_page = listing_error_on_page
        self._write_delay = write_delay
        self.page_requests: list[str | None] = []
        self.updates: list[tuple[str, str, dict[str, bool]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def repositories(self) -> list[RepositorySnapshot]:
        """Return the current state of every repository in listing order."""
        return [self._repositories[name] for name in self._order]

    async def viewer_login(self) -> str:
        if self._login_error is not None:
            raise self._login_error
        return self._login

    async def iter_repository_pages(
        self, login: str, *, after: str | None = None
    ) -> cabc.AsyncIterator[RepositoryPage]:
        assert login == self._login
        offset = int(after) if after is not None else 0
        page_number = 0
        while True:
            page_number += 1
            self.page_requests.append(None if offset == 0 else str(offset))
            if (
                self._listing_error_on_page is not None
                and self._listing_error_on_page[0] == page_number
            ):
                raise self._listing_error_on_page[1]
            nodes = self.repositories[offset : offset + self._page_size]
            offset += len(nodes)
            has_next = offset < len(self._order)
            yield RepositoryPage(
                nodes=tuple(nodes),
                has_next_page=has_next,
                end_cursor=str(offset) if nodes else None,
            )
            if not has_next:
                return

    async def update_repository(
        self, owner: str, name: str, payload: cabc.Mapping[str, bool]
    ) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._write_delay)
            self.updates.append((owner, name, dict(payload)))
            if name in self._failures:
                raise self._failures[name]
            changes = {_REST_TO_ATTRIBUTE[field]: value for field, value in payload.items()}
            self._repositories[name] = msgspec.structs.replace(
                self._repositories[name], **changes
            )
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True
