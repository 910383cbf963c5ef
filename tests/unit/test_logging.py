"""Unit tests for the femtologging helpers.

Run with:
    pytest tests/unit/test_logging.py
"""

from __future__ import annotations

import pytest

from repoconform.logging import (
    configure_logging,
    format_log_message,
    log_debug,
    log_error,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


@pytest.mark.parametrize(
    ("raw", "expected", "invalid"),
    [
        ("warning", "WARNING", False),
        ("  debug ", "DEBUG", False),
        (None, "INFO", True),
        ("   ", "INFO", True),
        ("verbose", "INFO", True),
    ],
)
def test_normalize_log_level(
    raw: str | None,
    expected: str,
    invalid: bool,  # noqa: FBT001
) -> None:
    """Levels are upper-cased and unknown values fall back to INFO."""
    assert normalize_log_level(raw) == (expected, invalid)


def test_format_log_message_leaves_bare_templates_alone() -> None:
    """Templates without arguments are not interpolated."""
    assert format_log_message("100% done") == "100% done"
    assert format_log_message("%d of %d", 3, 4) == "3 of 4"


@pytest.mark.parametrize(
    ("helper", "level"),
    [
        (log_debug, "DEBUG"),
        (log_info, "INFO"),
        (log_warning, "WARNING"),
        (log_error, "ERROR"),
    ],
)
def test_level_helpers_format_and_forward(
    helper: object, level: str
) -> None:
    """Each helper formats eagerly and logs at its level."""
    logger = _FakeLogger()
    exc = ValueError("boom")

    helper(logger, "repo %s: %d", "reef", 2, exc_info=exc)  # type: ignore[operator]

    assert logger.calls == [(level, "repo reef: 2", exc, False)]


def test_configure_logging_applies_normalized_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """configure_logging passes the normalized level to femtologging."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("repoconform.logging.basicConfig", fake_basic_config)

    assert configure_logging("nope") == ("INFO", True)
    assert captured == {"level": "INFO", "force": False}

    assert configure_logging("error", force=True) == ("ERROR", False)
    assert captured == {"level": "ERROR", "force": True}
