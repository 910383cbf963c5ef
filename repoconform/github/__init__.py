"""GitHub session: identity, repository listing and settings updates."""

from __future__ import annotations

from .client import (
    PAGE_SIZE,
    GitHubConfig,
    GitHubRepositoryClient,
    RepositorySettingsClient,
)
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from .models import RepositoryPage, RepositorySnapshot

__all__ = [
    "PAGE_SIZE",
    "GitHubAPIError",
    "GitHubConfig",
    "GitHubConfigError",
    "GitHubError",
    "GitHubRepositoryClient",
    "GitHubResponseShapeError",
    "GitHubTransportError",
    "RepositoryPage",
    "RepositorySettingsClient",
    "RepositorySnapshot",
]
