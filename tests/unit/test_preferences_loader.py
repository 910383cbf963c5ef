"""Tests for loading preferences from YAML and JSON files."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from repoconform.preferences import (
    PreferenceSet,
    PreferencesValidationError,
    load_preferences,
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_yaml_preferences(tmp_path: Path) -> None:
    """YAML booleans and nulls map onto the preference set."""
    path = _write(
        tmp_path,
        "prefs.yaml",
        """
squashMergeAllowed: true
hasWikiEnabled: false
forkingAllowed: null
delete_branch_on_merge: true
""",
    )
    assert load_preferences(path) == PreferenceSet(
        squash_merge_allowed=True,
        has_wiki_enabled=False,
        delete_branch_on_merge=True,
    )


def test_loads_json_preferences_under_preferences_key(tmp_path: Path) -> None:
    """A JSON document with a top-level preferences key is unwrapped."""
    path = _write(
        tmp_path,
        "prefs.json",
        '{"preferences": {"mergeCommitAllowed": false, "hasIssuesEnabled": true}}',
    )
    assert load_preferences(path) == PreferenceSet(
        merge_commit_allowed=False, has_issues_enabled=True
    )


def test_yaml_11_yes_is_not_a_boolean(tmp_path: Path) -> None:
    """YAML 1.2 parsing keeps ``yes`` as a string, which is rejected."""
    path = _write(tmp_path, "prefs.yaml", "hasWikiEnabled: yes\n")
    with pytest.raises(PreferencesValidationError, match="hasWikiEnabled"):
        load_preferences(path)


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("", "is empty"),
        ("- hasWikiEnabled\n", "must contain a mapping"),
        ("archived: true\n", "unknown repository setting"),
        ("hasWikiEnabled: true\nhasWikiEnabled: false\n", "failed to read"),
    ],
    ids=["empty", "list", "unknown-key", "duplicate-key"],
)
def test_rejects_malformed_documents(tmp_path: Path, text: str, fragment: str) -> None:
    """Malformed files raise PreferencesValidationError."""
    path = _write(tmp_path, "prefs.yaml", text)
    with pytest.raises(PreferencesValidationError, match=fragment):
        load_preferences(path)


def test_missing_file_is_a_validation_error(tmp_path: Path) -> None:
    """An unreadable preferences file is reported before any network access."""
    with pytest.raises(PreferencesValidationError, match="failed to read"):
        load_preferences(tmp_path / "missing.yaml")
