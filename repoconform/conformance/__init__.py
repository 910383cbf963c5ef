"""Fetch, select, evaluate and update repositories against preferences."""

from __future__ import annotations

from repoconform.github.models import RepositorySnapshot

from .evaluator import NonConformingRepository, evaluate
from .fetcher import fetch_repositories
from .selection import (
    DEFAULT_SELECTION_FILE,
    RepositoryReference,
    SelectionFileError,
    filter_repositories,
    load_selection,
    save_selection,
    selection_keys,
)
from .updater import (
    DEFAULT_MAX_CONCURRENCY,
    BatchUpdater,
    BatchUpdateResult,
    RepositoryUpdateOutcome,
    update_repositories,
)

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_SELECTION_FILE",
    "BatchUpdateResult",
    "BatchUpdater",
    "NonConformingRepository",
    "RepositoryReference",
    "RepositorySnapshot",
    "RepositoryUpdateOutcome",
    "SelectionFileError",
    "evaluate",
    "fetch_repositories",
    "filter_repositories",
    "load_selection",
    "save_selection",
    "selection_keys",
    "update_repositories",
]
