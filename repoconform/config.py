"""Runtime configuration read from the environment.

>>> import os
>>> os.environ["REPOCONFORM_MAX_CONCURRENCY"] = "4"
>>> RunConfig.from_env().max_concurrency
4

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from repoconform.conformance import DEFAULT_MAX_CONCURRENCY, DEFAULT_SELECTION_FILE
from repoconform.logging import DEFAULT_LOG_LEVEL


@dc.dataclass(frozen=True, slots=True)
class RunConfig:
    """Settings that shape a run but are not preferences.

    Attributes
    ----------
    max_concurrency
        Upper bound on repository writes in flight at once.
    log_level
        Raw log level; normalised when logging is configured.
    repositories_file
        Selection file used to seed the repository picker. A missing file is
        treated as an empty selection.
    preferences_file
        Preferences file used when none is given on the command line.

    """

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    log_level: str = DEFAULT_LOG_LEVEL
    repositories_file: Path = Path(DEFAULT_SELECTION_FILE)
    preferences_file: Path | None = None

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> RunConfig:
        """Read ``REPOCONFORM_MAX_CONCURRENCY``, ``REPOCONFORM_LOG_LEVEL``,
        ``REPOCONFORM_REPOSITORIES_FILE`` and ``REPOCONFORM_PREFERENCES``.

        Raises
        ------
        ValueError
            If ``REPOCONFORM_MAX_CONCURRENCY`` is not a positive integer.

        """
        max_concurrency = cls._parse_positive_int(
            "REPOCONFORM_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY
        )
        log_level = os.environ.get("REPOCONFORM_LOG_LEVEL", "").strip()
        raw_file = os.environ.get("REPOCONFORM_REPOSITORIES_FILE", "").strip()
        raw_preferences = os.environ.get("REPOCONFORM_PREFERENCES", "").strip()
        return cls(
            max_concurrency=max_concurrency,
            log_level=log_level or DEFAULT_LOG_LEVEL,
            repositories_file=Path(raw_file or DEFAULT_SELECTION_FILE),
            preferences_file=Path(raw_preferences) if raw_preferences else None,
        )
