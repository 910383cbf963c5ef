"""Narrow the fetched repositories to a chosen subset.

A selection can be seeded from a ``repositories.json`` file shaped as::

    {"repositories": [{"id": "R_1", "name": "reef", ...}, ...]}

Records may carry the full snapshot fields; only ``id`` and ``name`` are used.
"""

from __future__ import annotations

import collections.abc as cabc
from pathlib import Path

import msgspec

from repoconform.github import RepositorySnapshot
from repoconform.logging import get_logger, log_info, log_warning

logger = get_logger(__name__)

DEFAULT_SELECTION_FILE = "repositories.json"


class SelectionFileError(ValueError):
    """Raised when a persisted selection file is malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialise with the offending path and parse failure."""
        self.path = path
        self.reason = reason
        self.issues = [reason]
        super().__init__(f"invalid repository selection file {path}: {reason}")


class RepositoryReference(msgspec.Struct, frozen=True, kw_only=True):
    """Identity of a previously selected repository."""

    name: str
    id: str | None = None


class _SelectionDocument(msgspec.Struct, kw_only=True):
    repositories: list[RepositoryReference] = msgspec.field(default_factory=list)


class _SavedSelection(msgspec.Struct, kw_only=True):
    repositories: list[RepositorySnapshot]


def filter_repositories(
    snapshots: cabc.Sequence[RepositorySnapshot],
    *,
    select_all: bool,
    selected: cabc.Iterable[str] = (),
) -> list[RepositorySnapshot]:
    """Return ``snapshots`` unchanged, or the ones whose id or name was selected.

    The result keeps the input order and contains each repository at most
    once. Keys that match no fetched repository are ignored, so a selection
    can never introduce a repository that was not fetched.
    """
    if select_all:
        return list(snapshots)

    wanted = set(selected)
    chosen: list[RepositorySnapshot] = []
    seen: set[str] = set()
    matched: set[str] = set()
    for snapshot in snapshots:
        keys = {snapshot.id, snapshot.name} & wanted
        if not keys or snapshot.id in seen:
            continue
        seen.add(snapshot.id)
        matched |= keys
        chosen.append(snapshot)

    unknown = sorted(wanted - matched)
    if unknown:
        log_warning(
            logger,
            "Ignoring %d selection keys that match no fetched repository: %s",
            len(unknown),
            ", ".join(unknown),
        )
    log_info(logger, "Selected %d of %d repositories", len(chosen), len(snapshots))
    return chosen


def selection_keys(references: cabc.Iterable[RepositoryReference]) -> list[str]:
    """Return every key a reference can match by: its id, then its name.

    A reference whose id went stale still matches through its name.
    """
    keys: list[str] = []
    for reference in references:
        if reference.id:
            keys.append(reference.id)
        keys.append(reference.name)
    return keys


def load_selection(path: Path | str) -> tuple[RepositoryReference, ...]:
    """Read a persisted selection; a missing file is an empty selection."""
    path_obj = Path(path)
    try:
        raw = path_obj.read_bytes()
    except FileNotFoundError:
        return ()
    except OSError as exc:
        raise SelectionFileError(path_obj, str(exc)) from exc

    try:
        document = msgspec.json.decode(raw, type=_SelectionDocument)
    except msgspec.DecodeError as exc:
        raise SelectionFileError(path_obj, str(exc)) from exc
    return tuple(document.repositories)


def save_selection(
    path: Path | str, snapshots: cabc.Iterable[RepositorySnapshot]
) -> Path:
    """Write ``snapshots`` as a selection file and return its path."""
    path_obj = Path(path)
    document = _SavedSelection(repositories=list(snapshots))
    path_obj.write_bytes(msgspec.json.format(msgspec.json.encode(document)) + b"\n")
    log_info(
        logger,
        "Saved %d repositories to %s",
        len(document.repositories),
        path_obj,
    )
    return path_obj
