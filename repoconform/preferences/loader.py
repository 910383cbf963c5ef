"""Load preference sets from YAML or JSON files."""

from __future__ import annotations

from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import PreferencesValidationError
from .models import PreferenceSet

YAML_VERSION = (1, 2)


def load_preferences(path: Path | str) -> PreferenceSet:
    """Parse a preferences file into a :class:`PreferenceSet`.

    The document is a mapping of setting name to ``true``, ``false`` or
    ``null``. JSON is read through the same YAML 1.2 loader, which accepts it
    as a subset. A top-level ``preferences`` key is unwrapped when present.
    """
    path_obj = Path(path)
    try:
        loaded = _yaml().load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        msg = f"failed to read preferences from {path_obj}: {exc}"
        raise PreferencesValidationError.single(msg) from exc

    if loaded is None:
        msg = f"preferences file {path_obj} is empty"
        raise PreferencesValidationError.single(msg)

    if isinstance(loaded, dict) and set(loaded) == {"preferences"}:
        loaded = loaded["preferences"]

    if not isinstance(loaded, dict):
        msg = f"preferences file {path_obj} must contain a mapping of settings"
        raise PreferencesValidationError.single(msg)

    return PreferenceSet.from_mapping(loaded)


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
