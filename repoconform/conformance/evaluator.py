"""Compare repository snapshots against a preference set."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import types
import typing as typ

if typ.TYPE_CHECKING:
    from repoconform.github import RepositorySnapshot
    from repoconform.preferences import PreferenceSet
    from repoconform.settings import Setting


@dataclasses.dataclass(frozen=True, slots=True)
class NonConformingRepository:
    """A repository that differs from at least one enforced preference.

    ``differences`` maps each differing setting to the repository's current
    value, not the desired one. The desired values stay in the preference
    set.
    """

    id: str
    name: str
    differences: cabc.Mapping[Setting, bool]

    def __post_init__(self) -> None:
        """Freeze the differences mapping and reject empty records."""
        if not self.differences:
            msg = f"repository {self.name!r} has no differing settings"
            raise ValueError(msg)
        object.__setattr__(
            self, "differences", types.MappingProxyType(dict(self.differences))
        )

    @property
    def settings(self) -> tuple[Setting, ...]:
        """Return the differing settings in evaluation order."""
        return tuple(self.differences)

    def as_dict(self) -> dict[str, str | bool]:
        """Render as ``{"id", "name", <setting>: <current value>}``."""
        record: dict[str, str | bool] = {"id": self.id, "name": self.name}
        for setting, current in self.differences.items():
            record[setting.value] = current
        return record


def _differences(
    snapshot: RepositorySnapshot, enforced: list[tuple[Setting, bool]]
) -> dict[Setting, bool]:
    found: dict[Setting, bool] = {}
    for setting, desired in enforced:
        current = snapshot.value_of(setting)
        if current != desired:
            found[setting] = current
    return found


def evaluate(
    snapshots: cabc.Iterable[RepositorySnapshot], preferences: PreferenceSet
) -> tuple[NonConformingRepository, ...]:
    """Return the repositories that do not match ``preferences``.

    Only enforced settings are compared. Output order follows ``snapshots``;
    repositories that fully conform are omitted.
    """
    enforced = preferences.enforced()
    if not enforced:
        return ()

    results: list[NonConformingRepository] = []
    for snapshot in snapshots:
        differences = _differences(snapshot, enforced)
        if differences:
            results.append(
                NonConformingRepository(
                    id=snapshot.id, name=snapshot.name, differences=differences
                )
            )
    return tuple(results)
