"""Tests for repository selection and selection files."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003

import msgspec
import pytest

from repoconform.conformance import (
    RepositoryReference,
    SelectionFileError,
    filter_repositories,
    load_selection,
    save_selection,
    selection_keys,
)
from tests.helpers.github_fakes import make_snapshot, make_snapshots


def test_select_all_passes_everything_through() -> None:
    """Enforcing on all repositories returns the fetched list unchanged."""
    snapshots = make_snapshots(3)
    assert filter_repositories(snapshots, select_all=True, selected=["R_1"]) == snapshots


def test_selection_is_an_ordered_subsequence_without_duplicates() -> None:
    """Selected repositories keep fetch order and appear once."""
    snapshots = make_snapshots(4)
    chosen = filter_repositories(
        snapshots,
        select_all=False,
        selected=["repo-0003", "R_1", "repo-0001", "R_3"],
    )
    assert [repo.id for repo in chosen] == ["R_1", "R_3"]


def test_unknown_keys_never_add_repositories() -> None:
    """Keys for repositories that were not fetched are ignored."""
    snapshots = make_snapshots(2)
    chosen = filter_repositories(snapshots, select_all=False, selected=["ghost"])
    assert chosen == []


def test_empty_selection_is_valid() -> None:
    """Selecting nothing yields nothing."""
    assert filter_repositories(make_snapshots(2), select_all=False) == []


def test_missing_selection_file_is_empty(tmp_path: Path) -> None:
    """A missing repositories.json is not an error."""
    assert load_selection(tmp_path / "repositories.json") == ()


def test_selection_file_accepts_snapshot_records(tmp_path: Path) -> None:
    """Records shaped like snapshots load as references."""
    path = tmp_path / "repositories.json"
    path.write_text(
        '{"repositories": [{"id": "R_1", "name": "reef", "hasWikiEnabled": true},'
        ' {"name": "kelp"}]}',
        encoding="utf-8",
    )
    references = load_selection(path)
    assert references == (
        RepositoryReference(id="R_1", name="reef"),
        RepositoryReference(name="kelp"),
    )
    assert selection_keys(references) == ["R_1", "reef", "kelp"]


@pytest.mark.parametrize(
    "text",
    ["not json", '{"repositories": [{"id": "R_1"}]}', '{"repositories": 3}'],
    ids=["syntax", "missing-name", "wrong-type"],
)
def test_malformed_selection_file_is_rejected(tmp_path: Path, text: str) -> None:
    """Malformed selection files raise SelectionFileError."""
    path = tmp_path / "repositories.json"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(SelectionFileError) as exc:
        load_selection(path)
    assert exc.value.path == path


def test_saved_selection_round_trips_to_the_filter(tmp_path: Path) -> None:
    """A saved selection seeds the same subset on the next run."""
    snapshots = [make_snapshot("R_1", "reef"), make_snapshot("R_2", "kelp")]
    path = save_selection(tmp_path / "repositories.json", snapshots[1:])

    document = msgspec.json.decode(path.read_bytes())
    assert document["repositories"][0]["hasWikiEnabled"] is True

    keys = selection_keys(load_selection(path))
    assert filter_repositories(snapshots, select_all=False, selected=keys) == [
        snapshots[1]
    ]


def test_reference_with_stale_id_matches_by_name() -> None:
    """An entry whose id no longer exists still selects the repository by name."""
    snapshots = [make_snapshot("R_new", "reef"), make_snapshot("R_2", "kelp")]
    keys = selection_keys([RepositoryReference(id="R_old", name="reef")])
    chosen = filter_repositories(snapshots, select_all=False, selected=keys)
    assert [repo.id for repo in chosen] == ["R_new"]
