"""Structured run events and error categorisation.

Each event is a single log line of ``key=value`` pairs prefixed with the
event type, so runs can be followed by a log aggregator as well as on the
console.
"""

from __future__ import annotations

import enum
import typing as typ

from repoconform.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from repoconform.logging import get_logger, log_error, log_info, log_warning
from repoconform.preferences.errors import PreferencesValidationError

if typ.TYPE_CHECKING:
    from repoconform.conformance.updater import (
        BatchUpdateResult,
        RepositoryUpdateOutcome,
    )

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class RunEventType(enum.StrEnum):
    """Structured log event types emitted during a run."""

    LISTING_COMPLETED = "run.listing.completed"
    EVALUATION_COMPLETED = "run.evaluation.completed"
    UPDATE_SUCCEEDED = "run.update.succeeded"
    UPDATE_FAILED = "run.update.failed"
    UPDATE_COMPLETED = "run.update.completed"
    RUN_FAILED = "run.failed"


class ErrorCategory(enum.StrEnum):
    """Failure categories shown to users and attached to log events."""

    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    VALIDATION = "validation"
    TRANSIENT = "transient"
    TRANSPORT = "transport"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    CLIENT_ERROR = "client_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitHubTransportError, ErrorCategory.TRANSPORT),
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (PreferencesValidationError, ErrorCategory.VALIDATION),
)


def _categorize_api_error(exc: GitHubAPIError) -> ErrorCategory:
    if exc.rate_limited:
        return ErrorCategory.RATE_LIMITED
    if exc.is_unauthorized:
        return ErrorCategory.AUTHENTICATION
    if exc.is_forbidden:
        return ErrorCategory.FORBIDDEN
    if exc.is_not_found:
        return ErrorCategory.NOT_FOUND
    if exc.status_code is not None and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
        return ErrorCategory.TRANSIENT
    return ErrorCategory.CLIENT_ERROR


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Return the :class:`ErrorCategory` for ``exc``."""
    if isinstance(exc, GitHubAPIError):
        return _categorize_api_error(exc)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    if isinstance(exc, ValueError) and hasattr(exc, "issues"):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


class RunEventLogger:
    """Emit structured events for the listing, evaluation and update phases."""

    def log_listing_completed(self, login: str, repositories: int) -> None:
        """Log the number of repositories fetched for ``login``."""
        log_info(
            logger,
            "[%s] login=%s repositories=%d",
            RunEventType.LISTING_COMPLETED,
            login,
            repositories,
        )

    def log_evaluation_completed(
        self, checked: int, non_conforming: int, enforced: int
    ) -> None:
        """Log evaluation totals."""
        log_info(
            logger,
            "[%s] checked=%d non_conforming=%d enforced_settings=%d",
            RunEventType.EVALUATION_COMPLETED,
            checked,
            non_conforming,
            enforced,
        )

    def log_update_outcome(self, owner: str, outcome: RepositoryUpdateOutcome) -> None:
        """Log one repository write, at WARNING when it failed."""
        if outcome.succeeded:
            log_info(
                logger,
                "[%s] repo=%s/%s",
                RunEventType.UPDATE_SUCCEEDED,
                owner,
                outcome.name,
            )
            return
        log_warning(
            logger,
            "[%s] repo=%s/%s error_category=%s error_message=%s",
            RunEventType.UPDATE_FAILED,
            owner,
            outcome.name,
            outcome.category,
            outcome.error,
        )

    def log_update_completed(self, owner: str, result: BatchUpdateResult) -> None:
        """Log batch totals."""
        log_info(
            logger,
            "[%s] owner=%s attempted=%d succeeded=%d failed=%d",
            RunEventType.UPDATE_COMPLETED,
            owner,
            len(result.outcomes),
            len(result.succeeded),
            len(result.failed),
        )

    def log_run_failed(self, phase: str, error: BaseException) -> None:
        """Log a fatal failure with its phase and category."""
        log_error(
            logger,
            "[%s] phase=%s error_type=%s error_category=%s error_message=%s",
            RunEventType.RUN_FAILED,
            phase,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
