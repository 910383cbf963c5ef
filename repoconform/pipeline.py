"""Run orchestration: identity, listing, selection, evaluation and update.

Failures before any write are fatal and raised as :class:`FatalRunError`
tagged with the phase that failed. Write failures are never fatal; they are
reported per repository in the :class:`BatchUpdateResult`.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import enum
import typing as typ

from repoconform.conformance import (
    DEFAULT_MAX_CONCURRENCY,
    BatchUpdater,
    BatchUpdateResult,
    NonConformingRepository,
    evaluate,
    fetch_repositories,
)
from repoconform.logging import get_logger, log_info
from repoconform.observability import RunEventLogger

if typ.TYPE_CHECKING:
    from repoconform.github import RepositorySettingsClient, RepositorySnapshot
    from repoconform.preferences import PreferenceSet

logger = get_logger(__name__)

T = typ.TypeVar("T")

Selector: typ.TypeAlias = """cabc.Callable[
    [cabc.Sequence[RepositorySnapshot]],
    cabc.Awaitable[list[RepositorySnapshot]],
]"""


class RunPhase(enum.StrEnum):
    """Phases of a run, in order."""

    AUTHENTICATION = "authentication"
    LISTING = "listing"
    SELECTION = "selection"
    EVALUATION = "evaluation"
    UPDATE = "update"


class FatalRunError(RuntimeError):
    """Raised when a phase fails and the run cannot continue safely."""

    def __init__(self, phase: RunPhase, cause: Exception) -> None:
        """Initialise with the failing phase and the underlying error."""
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase} failed: {cause}")


@dataclasses.dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of the read-only part of a run."""

    login: str
    repositories: tuple[RepositorySnapshot, ...]
    selected: tuple[RepositorySnapshot, ...]
    non_conforming: tuple[NonConformingRepository, ...]

    @property
    def is_compliant(self) -> bool:
        """Return True when every selected repository matches the preferences."""
        return not self.non_conforming


class ConformanceRun:
    """One scan-and-fix run for the authenticated account."""

    def __init__(
        self,
        client: RepositorySettingsClient,
        preferences: PreferenceSet,
        *,
        selector: Selector | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        events: RunEventLogger | None = None,
    ) -> None:
        """Bind the run to a session, a preference set and an optional selector."""
        self._client = client
        self._preferences = preferences
        self._selector = selector
        self._max_concurrency = max_concurrency
        self._events = events or RunEventLogger()

    @property
    def preferences(self) -> PreferenceSet:
        """Return the preference set this run enforces."""
        return self._preferences

    async def _in_phase(
        self, phase: RunPhase, awaitable: cabc.Awaitable[T]
    ) -> T:
        try:
            return await awaitable
        except Exception as exc:
            self._events.log_run_failed(phase, exc)
            raise FatalRunError(phase, exc) from exc

    async def scan(self) -> ScanResult:
        """Resolve the login, list, select and evaluate repositories.

        Raises
        ------
        FatalRunError
            If any phase fails. No partial result is returned.

        """
        login = await self._in_phase(
            RunPhase.AUTHENTICATION, self._client.viewer_login()
        )
        log_info(logger, "Logged in as %s", login)

        repositories = await self._in_phase(
            RunPhase.LISTING, fetch_repositories(self._client, login)
        )
        self._events.log_listing_completed(login, len(repositories))

        selected = repositories
        if self._selector is not None:
            selected = await self._in_phase(
                RunPhase.SELECTION, self._selector(repositories)
            )

        try:
            non_conforming = evaluate(selected, self._preferences)
        except Exception as exc:
            self._events.log_run_failed(RunPhase.EVALUATION, exc)
            raise FatalRunError(RunPhase.EVALUATION, exc) from exc
        self._events.log_evaluation_completed(
            len(selected), len(non_conforming), len(self._preferences.enforced())
        )

        return ScanResult(
            login=login,
            repositories=tuple(repositories),
            selected=tuple(selected),
            non_conforming=non_conforming,
        )

    async def apply(self, scan: ScanResult) -> BatchUpdateResult:
        """Write the preferences to every non-conforming repository in ``scan``."""
        if scan.is_compliant:
            return BatchUpdateResult(outcomes=())
        updater = BatchUpdater(
            self._client,
            scan.login,
            max_concurrency=self._max_concurrency,
            events=self._events,
        )
        return await updater.update(scan.non_conforming, self._preferences)
