"""Preference sets and the files they are loaded from."""

from __future__ import annotations

from .errors import PreferencesValidationError
from .loader import load_preferences
from .models import PreferenceSet

__all__ = ["PreferenceSet", "PreferencesValidationError", "load_preferences"]
