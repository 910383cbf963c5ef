"""Errors raised by the GitHub session."""

from __future__ import annotations

_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403
_HTTP_NOT_FOUND = 404


class GitHubError(RuntimeError):
    """Base class for GitHub session failures."""


class GitHubAPIError(GitHubError):
    """Raised when GitHub answers with an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        rate_limited: bool = False,
        retry_after: float | None = None,
    ) -> None:
        """Initialise with a message and the response details."""
        self.status_code = status_code
        self.rate_limited = rate_limited
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def is_unauthorized(self) -> bool:
        """Return True when the token was rejected."""
        return self.status_code == _HTTP_UNAUTHORIZED

    @property
    def is_forbidden(self) -> bool:
        """Return True for permission failures that are not rate limits."""
        return self.status_code == _HTTP_FORBIDDEN and not self.rate_limited

    @property
    def is_not_found(self) -> bool:
        """Return True when the target does not exist (or is hidden)."""
        return self.status_code == _HTTP_NOT_FOUND

    @classmethod
    def http_error(
        cls,
        status_code: int,
        *,
        message: str | None = None,
        rate_limited: bool = False,
        retry_after: float | None = None,
    ) -> GitHubAPIError:
        """Return an error for a non-2xx HTTP response."""
        text = f"GitHub HTTP {status_code}"
        if message:
            text = f"{text}: {message}"
        return cls(
            text,
            status_code=status_code,
            rate_limited=rate_limited,
            retry_after=retry_after,
        )

    @classmethod
    def graphql_errors(cls, errors: object) -> GitHubAPIError:
        """Return an error for a GraphQL ``errors`` payload."""
        rate_limited = isinstance(errors, list) and any(
            isinstance(error, dict) and error.get("type") == "RATE_LIMITED"
            for error in errors
        )
        return cls(f"GitHub GraphQL errors: {errors}", rate_limited=rate_limited)


class GitHubTransportError(GitHubError):
    """Raised when a request never produced an HTTP response."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> GitHubTransportError:
        """Wrap a transport-level exception from httpx."""
        return cls(f"GitHub request failed: {type(exc).__name__}: {exc}")


class GitHubResponseShapeError(GitHubError):
    """Raised when a GitHub response is missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> GitHubResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"GitHub GraphQL response missing expected field: {field}")

    @classmethod
    def invalid_node(cls, index: int, reason: str) -> GitHubResponseShapeError:
        """Return an error for a repository node that cannot be decoded."""
        return cls(f"GitHub repository node {index} is malformed: {reason}")

    @classmethod
    def stale_cursor(cls, cursor: str | None) -> GitHubResponseShapeError:
        """Return an error when pagination does not advance."""
        return cls(f"GitHub pagination did not advance past cursor {cursor!r}")


class GitHubConfigError(GitHubError):
    """Raised when the GitHub session configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no token is configured."""
        return cls("REPOCONFORM_GITHUB_TOKEN or GITHUB_TOKEN is required")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
