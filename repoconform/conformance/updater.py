"""Apply a preference set to many repositories concurrently.

Writes are independent: each repository gets its own request, and a failure
for one repository is recorded in its outcome without affecting the others.

Usage
-----
>>> updater = BatchUpdater(client, "octocat", max_concurrency=5)
>>> result = await updater.update(non_conforming, preferences)
>>> result.failed_names
('locked-repo',)

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import typing as typ

from repoconform.logging import get_logger, log_debug
from repoconform.observability import ErrorCategory, RunEventLogger, categorize_error

if typ.TYPE_CHECKING:
    from repoconform.github import RepositorySettingsClient
    from repoconform.preferences import PreferenceSet

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


class NamedRepository(typ.Protocol):
    """Anything addressable by repository name."""

    @property
    def name(self) -> str:
        """Repository name within the owner's namespace."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryUpdateOutcome:
    """Result of the write for a single repository."""

    name: str
    error: str | None = None
    category: ErrorCategory | None = None

    @property
    def succeeded(self) -> bool:
        """Return True when the write was accepted."""
        return self.error is None

    @classmethod
    def success(cls, name: str) -> RepositoryUpdateOutcome:
        """Return a successful outcome for ``name``."""
        return cls(name=name)

    @classmethod
    def failure(cls, name: str, exc: Exception) -> RepositoryUpdateOutcome:
        """Return a failed outcome describing ``exc``."""
        return cls(
            name=name,
            error=str(exc) or type(exc).__name__,
            category=categorize_error(exc),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class BatchUpdateResult:
    """Per-repository outcomes of a batch, in input order."""

    outcomes: tuple[RepositoryUpdateOutcome, ...]

    @property
    def succeeded(self) -> tuple[RepositoryUpdateOutcome, ...]:
        """Return outcomes whose write was accepted."""
        return tuple(outcome for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> tuple[RepositoryUpdateOutcome, ...]:
        """Return outcomes whose write failed."""
        return tuple(outcome for outcome in self.outcomes if not outcome.succeeded)

    @property
    def failed_names(self) -> tuple[str, ...]:
        """Return the names to retry."""
        return tuple(outcome.name for outcome in self.failed)

    @property
    def all_succeeded(self) -> bool:
        """Return True when no write failed."""
        return not self.failed


class BatchUpdater:
    """Fan out one settings write per repository with bounded concurrency."""

    def __init__(
        self,
        client: RepositorySettingsClient,
        owner: str,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        events: RunEventLogger | None = None,
    ) -> None:
        """Bind the updater to a session and the owner of the repositories."""
        if max_concurrency < 1:
            msg = f"max_concurrency must be positive, got {max_concurrency}"
            raise ValueError(msg)
        self._client = client
        self._owner = owner
        self._max_concurrency = max_concurrency
        self._events = events or RunEventLogger()

    async def update(
        self,
        repositories: cabc.Iterable[NamedRepository],
        preferences: PreferenceSet,
    ) -> BatchUpdateResult:
        """Write ``preferences`` to every repository and collect the outcomes.

        The payload holds only enforced settings. With nothing enforced no
        request is sent and the result is empty.
        """
        payload = preferences.to_update_payload()
        names = [repository.name for repository in repositories]
        if not payload or not names:
            return BatchUpdateResult(outcomes=())

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded_update(name: str) -> RepositoryUpdateOutcome:
            async with semaphore:
                return await self._update_one(name, payload)

        outcomes = await asyncio.gather(*(bounded_update(name) for name in names))
        result = BatchUpdateResult(outcomes=tuple(outcomes))
        self._events.log_update_completed(self._owner, result)
        return result

    async def _update_one(
        self, name: str, payload: dict[str, bool]
    ) -> RepositoryUpdateOutcome:
        log_debug(logger, "Updating %s/%s with %s", self._owner, name, payload)
        try:
            await self._client.update_repository(self._owner, name, payload)
        except Exception as exc:  # noqa: BLE001 - recorded per repository
            outcome = RepositoryUpdateOutcome.failure(name, exc)
        else:
            outcome = RepositoryUpdateOutcome.success(name)
        self._events.log_update_outcome(self._owner, outcome)
        return outcome


async def update_repositories(
    client: RepositorySettingsClient,
    owner: str,
    repositories: cabc.Iterable[NamedRepository],
    preferences: PreferenceSet,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> BatchUpdateResult:
    """Apply ``preferences`` to ``repositories`` owned by ``owner``."""
    updater = BatchUpdater(client, owner, max_concurrency=max_concurrency)
    return await updater.update(repositories, preferences)
