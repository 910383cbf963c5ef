"""Collect the full list of owned repositories."""

from __future__ import annotations

import typing as typ

from repoconform.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    from repoconform.github import RepositorySettingsClient, RepositorySnapshot

logger = get_logger(__name__)


async def fetch_repositories(
    client: RepositorySettingsClient, login: str
) -> list[RepositorySnapshot]:
    """Return every repository owned by ``login``, in server order.

    All pages are read before returning. Any failure propagates unchanged and
    nothing is returned, since evaluating a partial list would report unseen
    repositories as conforming.
    """
    log_info(logger, "Getting repositories owned by %s", login)
    repositories: list[RepositorySnapshot] = []
    pages = 0
    async for page in client.iter_repository_pages(login):
        pages += 1
        repositories.extend(page.nodes)
        log_debug(
            logger,
            "Fetched page %d (%d repositories, has_next_page=%s)",
            pages,
            len(page.nodes),
            page.has_next_page,
        )
    log_info(
        logger, "Found %d repositories across %d pages", len(repositories), pages
    )
    return repositories
