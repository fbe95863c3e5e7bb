"""Immutable snapshot of a permission editing session.

Used both as the controller's live state and as the stored baseline.
Sets are frozensets, so every change produces a new object and snapshots
can be compared by value.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from permstate.schemas.permissions import PermissionData
from permstate.utils.sets import sets_equal


@dataclass(frozen=True)
class PermissionState:
    enabled_modules: frozenset[str] = field(default_factory=frozenset)
    selected_permissions: frozenset[str] = field(default_factory=frozenset)
    active_module: str | None = None
    active_submodule: str | None = None

    @classmethod
    def build(
        cls,
        enabled_modules: Iterable[str] = (),
        selected_permissions: Iterable[str] = (),
        active_module: str | None = None,
        active_submodule: str | None = None,
    ) -> PermissionState:
        return cls(
            enabled_modules=frozenset(enabled_modules),
            selected_permissions=frozenset(selected_permissions),
            active_module=active_module,
            active_submodule=active_submodule,
        )

    def evolve(self, **changes) -> PermissionState:
        return replace(self, **changes)

    def differs_from(self, other: PermissionState) -> bool:
        """Compare enabled modules and selected permissions only; focus is ignored."""
        return not (
            sets_equal(self.enabled_modules, other.enabled_modules)
            and sets_equal(self.selected_permissions, other.selected_permissions)
        )

    def to_data(self) -> PermissionData:
        """Serializable projection handed to the hosting form (sorted lists for stable form data)."""
        return PermissionData(
            enabled_modules=sorted(self.enabled_modules),
            selected_permissions=sorted(self.selected_permissions),
            active_module=self.active_module,
            active_submodule=self.active_submodule,
        )
