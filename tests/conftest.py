"""Pytest configuration and fixtures for permstate tests.

Provides reusable catalogs, saved selections and a change recorder.
"""

import pytest

from permstate.catalog import PermissionCatalog
from permstate.services.controller import PermissionStateController


# ── Catalog Fixtures ─────────────────────────────────────────────

@pytest.fixture
def catalog_payload() -> dict:
    """Raw catalog as delivered by the module-permissions API."""
    return {
        "Billing": {"submodules": {"Invoices": ["view", "edit"]}},
        "Reports": {"submodules": {"Export": ["run"]}},
    }


@pytest.fixture
def catalog(catalog_payload) -> PermissionCatalog:
    return PermissionCatalog.from_raw(catalog_payload)


@pytest.fixture
def saved_selection() -> dict:
    """Previously saved selection for an existing role."""
    return {
        "enabledModules": ["Billing"],
        "selectedPermissions": ["Billing-Invoices-view"],
    }


# ── Controller Fixtures ──────────────────────────────────────────

class ChangeRecorder:
    """Stands in for the hosting form's on_change handler."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, field: str, value: dict) -> None:
        self.calls.append((field, value))

    @property
    def last(self) -> dict:
        return self.calls[-1][1]

    def clear(self) -> None:
        self.calls.clear()


@pytest.fixture
def recorder() -> ChangeRecorder:
    return ChangeRecorder()


@pytest.fixture
def controller(recorder) -> PermissionStateController:
    """Controller with explicit flags so environment settings don't leak in."""
    ctrl = PermissionStateController(
        recorder,
        context_key="role-42",
        read_only=False,
        advanced_notifications=False,
        strict_submodule_lookup=False,
        require_enabled_for_focus=False,
    )
    yield ctrl
    ctrl.close()


@pytest.fixture
def saved_controller(controller, catalog_payload, saved_selection, recorder):
    """Controller initialized from the saved selection, recorder cleared."""
    controller.initialize(catalog_payload, saved_selection)
    recorder.clear()
    return controller


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
