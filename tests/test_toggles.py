"""Tests for the pure toggle functions."""

import pytest

from permstate.catalog import PermissionCatalog
from permstate.models.permission_state import PermissionState
from permstate.services.toggles import (
    apply_module_toggle,
    focus_after_toggle,
    focus_module,
    focus_submodule,
    remove_module_permissions,
    toggle_module,
    toggle_permission,
    toggle_submodule_permissions,
)


@pytest.mark.unit
class TestTogglePermission:
    """Test single permission toggling."""

    @pytest.mark.parametrize(
        "selected, key",
        [
            (set(), "m-s-p"),
            ({"m-s-p"}, "m-s-p"),
            ({"m-s-p", "m-s-q"}, "x-y-z"),
        ],
    )
    def test_toggle_is_its_own_inverse(self, selected, key):
        assert toggle_permission(toggle_permission(selected, key), key) == frozenset(selected)

    def test_input_is_not_mutated(self):
        selected = {"m-s-p"}

        result = toggle_permission(selected, "m-s-q")

        assert selected == {"m-s-p"}
        assert result == {"m-s-p", "m-s-q"}
        assert result is not selected


@pytest.mark.unit
class TestToggleSubmodule:
    """Test select-all / deselect-all."""

    def test_select_all_then_deselect_all(self):
        first = toggle_submodule_permissions(frozenset(), "module-sub", ["p1", "p2"])
        assert first == {"module-sub-p1", "module-sub-p2"}

        second = toggle_submodule_permissions(first, "module-sub", ["p1", "p2"])
        assert second == frozenset()

    def test_partial_selection_completes(self):
        result = toggle_submodule_permissions({"module-sub-p1"}, "module-sub", ["p1", "p2"])

        assert result == {"module-sub-p1", "module-sub-p2"}

    def test_other_submodules_untouched(self):
        selected = {"module-sub-p1", "module-sub-p2", "module-other-p1"}

        result = toggle_submodule_permissions(selected, "module-sub", ["p1", "p2"])

        assert result == {"module-other-p1"}

    def test_empty_permission_list_changes_nothing(self):
        selected = frozenset({"module-other-p1"})

        assert toggle_submodule_permissions(selected, "module-sub", []) == selected


@pytest.mark.unit
class TestToggleModule:
    """Test module enable/disable and cascade removal."""

    def test_disable_requests_cascade(self):
        result = toggle_module({"m1", "m2"}, "m1")

        assert result.enabled == {"m2"}
        assert result.was_enabled is True
        assert result.should_cascade_removal is True

    def test_enable_never_cascades(self):
        result = toggle_module({"m2"}, "m1")

        assert result.enabled == {"m1", "m2"}
        assert result.was_enabled is False
        assert result.should_cascade_removal is False

    def test_cascade_removal_is_complete(self):
        catalog = PermissionCatalog.from_raw({"m": {"submodules": {"s": ["p1", "p2"]}}})

        result = remove_module_permissions({"m-s-p1", "m-s-p2", "other-x-y"}, "m", catalog)

        assert result == {"other-x-y"}

    def test_cascade_for_unknown_module_is_noop(self, catalog):
        selected = frozenset({"Billing-Invoices-view"})

        assert remove_module_permissions(selected, "Nope", catalog) == selected

    def test_enable_keeps_selected_permissions(self, catalog):
        state = PermissionState.build(["Reports"], ["Billing-Invoices-view", "Reports-Export-run"])

        result = apply_module_toggle(state, "Billing", catalog)

        assert result.enabled_modules == {"Billing", "Reports"}
        assert result.selected_permissions == state.selected_permissions


@pytest.mark.unit
class TestFocus:
    """Test active module / submodule transitions."""

    def test_disabling_other_module_keeps_focus(self, catalog):
        state = PermissionState.build(["Billing", "Reports"], active_module="Billing")

        result = apply_module_toggle(state, "Reports", catalog)

        assert result.active_module == "Billing"

    def test_disabling_active_module_clears_focus(self, catalog):
        state = PermissionState.build(
            ["Billing", "Reports"],
            active_module="Billing",
            active_submodule="Billing-Invoices",
        )

        result = apply_module_toggle(state, "Billing", catalog)

        assert result.active_module is None
        assert result.active_submodule is None

    def test_focus_after_toggle_enabled(self):
        assert focus_after_toggle("m1", "m1-s", "m1", is_enabled=True) == ("m1", "m1-s")

    def test_module_click_clears_submodule(self):
        state = PermissionState.build(["m1"], active_module="m2", active_submodule="m2-s")

        result = focus_module(state, "m1")

        assert result.active_module == "m1"
        assert result.active_submodule is None

    def test_submodule_click_sets_parent(self):
        result = focus_submodule(PermissionState(), "m1", "s1")

        assert result.active_module == "m1"
        assert result.active_submodule == "m1-s1"

    def test_read_only_ignores_clicks(self):
        state = PermissionState.build(["m1"])

        assert focus_module(state, "m1", read_only=True) is state
        assert focus_submodule(state, "m1", "s1", read_only=True) is state

    def test_require_enabled(self):
        state = PermissionState.build(["m1"])

        assert focus_module(state, "m2", require_enabled=True) is state
        assert focus_submodule(state, "m2", "s", require_enabled=True) is state
        assert focus_module(state, "m1", require_enabled=True).active_module == "m1"
