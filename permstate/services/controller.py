"""Permission state controller, one per edited user or role.

Lifecycle:
  UNINITIALIZED ──initialize()──► INITIALIZED_FROM_SAVED | INITIALIZED_DEFAULT
  INITIALIZED_* ◄──toggles──► DIRTY
  any ──reset()──► INITIALIZED_*   (back to the baseline)

Design:
  - The controller is the only stateful piece.  All transitions are
    computed by the pure functions in `permstate.services.toggles`; the
    controller swaps in the returned snapshot (copy-on-write) and recomputes
    the has-changes flag from scratch on every mutation, so editing back to
    the baseline is detected as clean again.
  - The baseline is captured once, on the first `initialize()` with a
    non-empty catalog, and never overwritten afterwards.
  - After every toggle and after `reset()` the host is called with
    `on_change("permissions", {...})`, a camelCase dict of plain lists.
  - In advanced notification mode module toggles notify after a short,
    cancellable delay.  The payload is computed up front from the
    post-cascade snapshot.  A newer notification, `reset()` or `close()`
    cancels a pending one.
  - Nothing raises: read-only mode, missing baseline, unknown names and
    malformed input are all no-ops.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from permstate.catalog import PermissionCatalog
from permstate.config import settings
from permstate.models.permission_state import PermissionState
from permstate.schemas.permissions import ModuleRow, PermissionData, SavedSelection, SubmoduleSummary
from permstate.services.scheduler import DeferredNotifier
from permstate.services.toggles import (
    apply_module_toggle,
    focus_module,
    focus_submodule,
    toggle_permission,
    toggle_submodule_permissions,
)
from permstate.utils.sets import (
    is_fully_selected,
    partition_by_prefix,
    permission_key,
    sets_equal,
    submodule_key,
)

logger = logging.getLogger("permstate.controller")

PERMISSIONS_FIELD = "permissions"

ChangeCallback = Callable[[str, dict[str, Any]], None]
ChangesDetectedCallback = Callable[[bool], None]


class ControllerStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED_FROM_SAVED = "initialized_from_saved"
    INITIALIZED_DEFAULT = "initialized_default"
    DIRTY = "dirty"


def _fingerprint(enabled: Iterable[str], selected: Iterable[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    return tuple(sorted(enabled)), tuple(sorted(selected))


class PermissionStateController:
    def __init__(
        self,
        on_change: ChangeCallback | None = None,
        *,
        context_key: str | None = None,
        read_only: bool | None = None,
        advanced_notifications: bool | None = None,
        strict_submodule_lookup: bool | None = None,
        require_enabled_for_focus: bool | None = None,
        notification_delay: float | None = None,
        on_changes_detected: ChangesDetectedCallback | None = None,
        reset_trigger: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.on_change = on_change
        self.on_changes_detected = on_changes_detected
        self.context_key = context_key

        self.read_only = settings.read_only if read_only is None else read_only
        self.advanced_notifications = (
            settings.advanced_notifications if advanced_notifications is None else advanced_notifications
        )
        self.strict_submodule_lookup = (
            settings.strict_submodule_lookup if strict_submodule_lookup is None else strict_submodule_lookup
        )
        self.require_enabled_for_focus = (
            settings.require_enabled_for_focus if require_enabled_for_focus is None else require_enabled_for_focus
        )
        delay = settings.notification_delay if notification_delay is None else notification_delay

        self._catalog = PermissionCatalog()
        self._state = PermissionState()
        self._baseline: PermissionState | None = None
        self._seeded_as: ControllerStatus | None = None
        self._has_changes = False
        self._last_reset_trigger = reset_trigger
        self._last_form_value: tuple | None = None
        self._notifier = DeferredNotifier(delay, loop=loop)

    def __repr__(self) -> str:
        return (
            f"<PermissionStateController(context={self.context_key!r}, "
            f"status={self.status.value}, has_changes={self._has_changes})>"
        )

    def __enter__(self) -> PermissionStateController:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def _label(self) -> str:
        return self.context_key or "-"

    # ── Read side ────────────────────────────────────────────

    @property
    def catalog(self) -> PermissionCatalog:
        return self._catalog

    @property
    def snapshot(self) -> PermissionState:
        return self._state

    @property
    def baseline(self) -> PermissionState | None:
        return self._baseline

    @property
    def enabled_modules(self) -> frozenset[str]:
        return self._state.enabled_modules

    @property
    def selected_permissions(self) -> frozenset[str]:
        return self._state.selected_permissions

    @property
    def active_module(self) -> str | None:
        return self._state.active_module

    @property
    def active_submodule(self) -> str | None:
        return self._state.active_submodule

    @property
    def is_initialized(self) -> bool:
        return self._baseline is not None

    @property
    def status(self) -> ControllerStatus:
        if self._baseline is None:
            return ControllerStatus.UNINITIALIZED
        if self._has_changes:
            return ControllerStatus.DIRTY
        return self._seeded_as

    def has_changes(self) -> bool:
        return self._has_changes

    def to_data(self) -> PermissionData:
        return self._state.to_data()

    def module_rows(self) -> list[ModuleRow]:
        """One row per catalog module with its enabled flag and selection count."""
        selected = self._state.selected_permissions
        rows = []
        for module in self._catalog:
            submodules = self._catalog.submodules(module)
            count = sum(
                1
                for sub, permissions in submodules.items()
                for permission in permissions
                if permission_key(module, sub, permission) in selected
            )
            rows.append(ModuleRow(
                id=module,
                module=module,
                submodules={sub: list(perms) for sub, perms in submodules.items()},
                is_module_enabled=module in self._state.enabled_modules,
                selected_count=count,
            ))
        return rows

    def submodule_summary(self, module: str, submodule: str) -> SubmoduleSummary:
        permissions = self._catalog.find_permissions(module, submodule) or ()
        key = submodule_key(module, submodule)
        current = sorted(partition_by_prefix(self._state.selected_permissions, key))
        return SubmoduleSummary(
            key=key,
            selected=current,
            total=len(permissions),
            all_selected=is_fully_selected(current, permissions),
        )

    # ── Initialization ───────────────────────────────────────

    def initialize(self, catalog: Any, saved_selection: Any = None) -> bool:
        """Seed state and capture the baseline.  Returns True if it did.

        Ignored once a baseline exists, and while the catalog is still empty.
        """
        if self._baseline is not None:
            logger.debug("[%s] Baseline already captured; initialize ignored", self._label)
            return False

        catalog = PermissionCatalog.from_raw(catalog)
        if not catalog:
            logger.debug("[%s] Catalog empty; waiting for data", self._label)
            return False
        self._catalog = catalog

        saved = SavedSelection.from_raw(saved_selection)
        if saved is not None and saved.is_usable:
            # Focus is never restored: the user starts with nothing selected for editing.
            state = PermissionState.build(saved.enabled_modules, saved.selected_permissions)
            self._seeded_as = ControllerStatus.INITIALIZED_FROM_SAVED
        else:
            state = PermissionState.build(catalog.module_names)
            self._seeded_as = ControllerStatus.INITIALIZED_DEFAULT

        self._state = state
        self._baseline = state
        self._recompute()
        logger.info(
            "[%s] Initialized (%s): %d module(s) enabled, %d permission(s) selected",
            self._label,
            self._seeded_as.value,
            len(state.enabled_modules),
            len(state.selected_permissions),
        )

        if self._seeded_as is ControllerStatus.INITIALIZED_DEFAULT and self._form_needs_defaults(saved):
            # Push the defaults so they get saved even if the user never edits anything.
            self._notify(state)
        return True

    def _form_needs_defaults(self, saved: SavedSelection | None) -> bool:
        current_enabled = frozenset(saved.enabled_modules or []) if saved else frozenset()
        current_selected = (saved.selected_permissions or []) if saved else []
        return not sets_equal(current_enabled, self._state.enabled_modules) or len(current_selected) > 0

    def reload_catalog(self, catalog: Any) -> bool:
        """Swap in a newer catalog without touching the baseline.

        When the state was default-seeded and the catalog's module set has
        changed, the enabled modules follow the new catalog.  Returns True if
        live state changed.
        """
        catalog = PermissionCatalog.from_raw(catalog)
        if not catalog:
            logger.debug("[%s] Ignoring empty catalog reload", self._label)
            return False

        previous_modules = frozenset(self._catalog.module_names)
        self._catalog = catalog
        if self._baseline is None or self._seeded_as is not ControllerStatus.INITIALIZED_DEFAULT:
            return False

        modules = frozenset(catalog.module_names)
        if sets_equal(modules, previous_modules) or sets_equal(modules, self._state.enabled_modules):
            return False

        logger.info("[%s] Catalog modules changed; re-seeding enabled modules", self._label)
        self._commit(self._state.evolve(enabled_modules=modules))
        self._notify(self._state)
        return True

    # ── Toggles ──────────────────────────────────────────────

    def toggle_module(self, module: str) -> None:
        if self._ignored("toggle_module"):
            return
        self._commit(apply_module_toggle(self._state, module, self._catalog))
        self._notify(self._state, deferred=self.advanced_notifications)

    def toggle_submodule_select_all(self, module: str, submodule: str) -> None:
        if self._ignored("toggle_submodule_select_all"):
            return

        permissions = self._catalog.find_permissions(module, submodule)
        if permissions is None:
            if self.strict_submodule_lookup:
                logger.debug("[%s] Unknown submodule %s/%s; select-all ignored", self._label, module, submodule)
                return
            permissions = ()

        selected = toggle_submodule_permissions(
            self._state.selected_permissions,
            submodule_key(module, submodule),
            permissions,
        )
        self._commit(self._state.evolve(selected_permissions=selected))
        self._notify(self._state)

    def toggle_permission(self, module: str, submodule: str, permission: str) -> None:
        if self._ignored("toggle_permission"):
            return
        selected = toggle_permission(
            self._state.selected_permissions,
            permission_key(module, submodule, permission),
        )
        self._commit(self._state.evolve(selected_permissions=selected))
        self._notify(self._state)

    # ── Focus ────────────────────────────────────────────────

    def click_module(self, module: str) -> None:
        self._state = focus_module(
            self._state,
            module,
            read_only=self.read_only,
            require_enabled=self.require_enabled_for_focus,
        )

    def click_submodule(self, module: str, submodule: str) -> None:
        self._state = focus_submodule(
            self._state,
            module,
            submodule,
            read_only=self.read_only,
            require_enabled=self.require_enabled_for_focus,
        )

    # ── Reset ────────────────────────────────────────────────

    def reset(self) -> bool:
        """Restore the baseline.  Returns False when there is nothing to reset to."""
        if self._baseline is None:
            logger.debug("[%s] No baseline yet; reset ignored", self._label)
            return False

        self._notifier.cancel()
        self._commit(self._baseline)
        logger.info("[%s] Permissions reset to baseline", self._label)
        self._notify(self._baseline)
        return True

    def handle_reset_trigger(self, value: int | None) -> bool:
        """React to the host's reset counter; only an increase above zero fires."""
        previous = self._last_reset_trigger or 0
        self._last_reset_trigger = value
        if value is None or value <= 0 or value <= previous:
            return False
        return self.reset()

    # ── External sync ────────────────────────────────────────

    def apply_external(self, selection: Any) -> bool:
        """Adopt a form value that was changed outside the controller.

        Used when the host rewrites the permissions itself (for example when
        duplicating another role's permissions).  The baseline is untouched,
        so reset() still goes back to the originally loaded state.
        """
        if self._baseline is None:
            return False

        saved = SavedSelection.from_raw(selection)
        if saved is None or not saved.is_usable:
            return False

        fingerprint = _fingerprint(saved.enabled_modules, saved.selected_permissions)
        if fingerprint == self._last_form_value:
            return False
        self._last_form_value = fingerprint

        changes: dict[str, Any] = {}
        enabled = frozenset(saved.enabled_modules)
        if not sets_equal(enabled, self._state.enabled_modules):
            changes["enabled_modules"] = enabled
        selected = frozenset(saved.selected_permissions)
        if not sets_equal(selected, self._state.selected_permissions):
            changes["selected_permissions"] = selected
        if saved.has_focus_field("active_module"):
            changes["active_module"] = saved.active_module
        if saved.has_focus_field("active_submodule"):
            changes["active_submodule"] = saved.active_submodule

        if not changes:
            return False
        logger.debug("[%s] Applied external permission update", self._label)
        self._commit(self._state.evolve(**changes))
        return True

    # ── Teardown ─────────────────────────────────────────────

    def close(self) -> None:
        """Cancel pending notifications and stop notifying the host."""
        self._notifier.close()
        logger.debug("[%s] Controller closed", self._label)

    # ── Internals ────────────────────────────────────────────

    def _ignored(self, operation: str) -> bool:
        if self.read_only:
            logger.debug("[%s] Read-only; %s ignored", self._label, operation)
            return True
        return False

    def _commit(self, state: PermissionState) -> None:
        self._state = state
        self._recompute()

    def _recompute(self) -> None:
        changed = self._baseline is not None and self._state.differs_from(self._baseline)
        if changed == self._has_changes:
            return
        self._has_changes = changed
        if self.on_changes_detected is not None and not self._notifier.closed:
            self.on_changes_detected(changed)

    def _notify(self, state: PermissionState, deferred: bool = False) -> None:
        if self.on_change is None or self._notifier.closed:
            return

        data = state.to_data()
        self._last_form_value = _fingerprint(data.enabled_modules, data.selected_permissions)
        payload = data.as_form_value()

        if deferred:
            self._notifier.schedule(lambda: self.on_change(PERMISSIONS_FIELD, payload))
        else:
            self._notifier.cancel()
            self.on_change(PERMISSIONS_FIELD, payload)
