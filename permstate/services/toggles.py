"""Pure state transitions for the permission table.

Every function takes sets/snapshots and returns new ones; nothing here
mutates its input or keeps state, and nothing raises.  Unknown modules,
submodules and keys are treated as "not present".

Select-all policy:
  A submodule toggles to *all selected* whenever fewer than all of its
  permissions are selected, and to *none selected* only when every one is.
  A partially selected submodule therefore always completes on the next
  click instead of collapsing.
"""

from __future__ import annotations

from collections.abc import Iterable, Set
from typing import NamedTuple

from permstate.catalog import PermissionCatalog
from permstate.models.permission_state import PermissionState
from permstate.utils.sets import partition_by_prefix, permission_key, submodule_key


class ModuleToggle(NamedTuple):
    enabled: frozenset[str]
    was_enabled: bool
    should_cascade_removal: bool


# ── Permission sets ──────────────────────────────────────────


def toggle_permission(selected: Set[str], key: str) -> frozenset[str]:
    if key in selected:
        return frozenset(selected - {key})
    return frozenset(selected | {key})


def toggle_submodule_permissions(
    selected: Set[str],
    sub_key: str,
    all_permissions: Iterable[str],
) -> frozenset[str]:
    all_permissions = list(all_permissions)
    current = partition_by_prefix(selected, sub_key)
    keys = {f"{sub_key}-{permission}" for permission in all_permissions}

    if len(current) < len(all_permissions):
        return frozenset(selected | keys)
    return frozenset(selected - keys)


def remove_module_permissions(
    selected: Set[str],
    module: str,
    catalog: PermissionCatalog,
) -> frozenset[str]:
    """Drop every catalog permission of `module`, selected or not."""
    doomed = {
        permission_key(module, sub, permission)
        for sub, permissions in catalog.submodules(module).items()
        for permission in permissions
    }
    return frozenset(selected - doomed)


# ── Modules ──────────────────────────────────────────────────


def toggle_module(enabled: Set[str], module: str) -> ModuleToggle:
    was_enabled = module in enabled
    if was_enabled:
        new_enabled = frozenset(enabled - {module})
    else:
        new_enabled = frozenset(enabled | {module})
    return ModuleToggle(
        enabled=new_enabled,
        was_enabled=was_enabled,
        should_cascade_removal=was_enabled,
    )


# ── Focus ────────────────────────────────────────────────────


def focus_after_toggle(
    active_module: str | None,
    active_submodule: str | None,
    module: str,
    is_enabled: bool,
) -> tuple[str | None, str | None]:
    """Clear focus only when the focused module itself was just disabled."""
    if active_module == module and not is_enabled:
        return None, None
    return active_module, active_submodule


def focus_module(
    state: PermissionState,
    module: str,
    *,
    read_only: bool = False,
    require_enabled: bool = False,
) -> PermissionState:
    if read_only:
        return state
    if require_enabled and module not in state.enabled_modules:
        return state
    return state.evolve(active_module=module, active_submodule=None)


def focus_submodule(
    state: PermissionState,
    module: str,
    submodule: str,
    *,
    read_only: bool = False,
    require_enabled: bool = False,
) -> PermissionState:
    if read_only:
        return state
    if require_enabled and module not in state.enabled_modules:
        return state
    return state.evolve(active_module=module, active_submodule=submodule_key(module, submodule))


# ── Composite transition ─────────────────────────────────────


def apply_module_toggle(
    state: PermissionState,
    module: str,
    catalog: PermissionCatalog,
) -> PermissionState:
    """Toggle `module` and apply cascade removal and focus clearing in one step."""
    result = toggle_module(state.enabled_modules, module)
    if not result.should_cascade_removal:
        return state.evolve(enabled_modules=result.enabled)

    active_module, active_submodule = focus_after_toggle(
        state.active_module, state.active_submodule, module, is_enabled=False
    )
    return PermissionState(
        enabled_modules=result.enabled,
        selected_permissions=remove_module_permissions(state.selected_permissions, module, catalog),
        active_module=active_module,
        active_submodule=active_submodule,
    )
