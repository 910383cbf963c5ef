"""The Preference Set: desired values for the enforceable settings."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

import msgspec

from repoconform.settings import SETTING_SPECS, Setting, parse_setting, spec_for

from .errors import PreferencesValidationError


class PreferenceSet(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    forbid_unknown_fields=True,
    rename="camel",
):
    """Desired repository settings.

    ``None`` means the setting is not enforced: it is never compared against a
    repository and never written. ``False`` is an enforced value like any
    other.

    Attributes are the snake_case names from :data:`SETTING_SPECS`; on the
    wire (YAML/JSON files) the camelCase GraphQL names are used.

    """

    auto_merge_allowed: bool | None = None
    delete_branch_on_merge: bool | None = None
    forking_allowed: bool | None = None
    has_issues_enabled: bool | None = None
    has_projects_enabled: bool | None = None
    has_wiki_enabled: bool | None = None
    merge_commit_allowed: bool | None = None
    rebase_merge_allowed: bool | None = None
    squash_merge_allowed: bool | None = None

    def get(self, setting: Setting) -> bool | None:
        """Return the enforced value for ``setting``, or ``None``."""
        return getattr(self, spec_for(setting).attribute)

    def enforced(self) -> list[tuple[Setting, bool]]:
        """Return ``(setting, desired)`` pairs for every enforced setting."""
        pairs: list[tuple[Setting, bool]] = []
        for setting in SETTING_SPECS:
            value = self.get(setting)
            if value is not None:
                pairs.append((setting, value))
        return pairs

    @property
    def is_empty(self) -> bool:
        """Return True when no setting is enforced."""
        return not self.enforced()

    def to_update_payload(self) -> dict[str, bool]:
        """Build the sparse REST body that applies these preferences.

        Settings that are not enforced are left out so the remote value is
        untouched.
        """
        return {
            spec_for(setting).rest_field: value
            for setting, value in self.enforced()
        }

    @classmethod
    def from_mapping(
        cls, values: cabc.Mapping[Setting | str, object]
    ) -> PreferenceSet:
        """Build a preference set from a loosely keyed mapping.

        Keys may be :class:`Setting` members, GraphQL names or attribute names.
        Values must be booleans or ``None``.

        Raises
        ------
        PreferencesValidationError
            If a key is not a known setting, appears twice under different
            spellings, or has a non-boolean value.

        """
        issues: list[str] = []
        normalized: dict[str, object] = {}
        for raw_key, value in values.items():
            try:
                setting = parse_setting(str(raw_key))
            except ValueError as exc:
                issues.append(str(exc))
                continue
            if setting.value in normalized:
                issues.append(f"setting {setting.value} is given more than once")
                continue
            if value is not None and not isinstance(value, bool):
                issues.append(
                    f"{setting.value} must be true, false or null, got {value!r}"
                )
                continue
            normalized[setting.value] = value

        if issues:
            raise PreferencesValidationError(issues)

        try:
            return msgspec.convert(normalized, type=cls)
        except msgspec.ValidationError as exc:  # pragma: no cover - guarded above
            raise PreferencesValidationError.single(str(exc)) from exc

    def describe(self) -> dict[str, typ.Literal["yes", "no", "not enforced"]]:
        """Return a human summary keyed by GraphQL setting name."""
        summary: dict[str, typ.Literal["yes", "no", "not enforced"]] = {}
        for setting in SETTING_SPECS:
            value = self.get(setting)
            if value is None:
                summary[setting.value] = "not enforced"
            else:
                summary[setting.value] = "yes" if value else "no"
        return summary
