"""Errors raised while reading preference sets."""

from __future__ import annotations


class PreferencesValidationError(ValueError):
    """Raised when user-supplied preferences cannot be used."""

    def __init__(self, issues: list[str]) -> None:
        """Keep the individual issues alongside the joined message."""
        super().__init__("\n".join(issues))
        self.issues = issues

    @classmethod
    def single(cls, issue: str) -> PreferencesValidationError:
        """Return an error describing one problem."""
        return cls([issue])
