"""Find and fix GitHub repositories that drift from preferred settings."""

from __future__ import annotations

from .conformance import (
    BatchUpdateResult,
    NonConformingRepository,
    RepositorySnapshot,
    evaluate,
    fetch_repositories,
    filter_repositories,
    update_repositories,
)
from .preferences import PreferenceSet, load_preferences
from .settings import Setting

__all__ = [
    "BatchUpdateResult",
    "NonConformingRepository",
    "PreferenceSet",
    "RepositorySnapshot",
    "Setting",
    "evaluate",
    "fetch_repositories",
    "filter_repositories",
    "load_preferences",
    "update_repositories",
]
