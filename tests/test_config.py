"""Tests for settings and their effect on new controllers."""

import pytest
from pydantic import ValidationError

from permstate.config import Settings, settings
from permstate.services.controller import PermissionStateController


@pytest.mark.unit
class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("READ_ONLY", "ADVANCED_NOTIFICATIONS", "NOTIFICATION_DELAY"):
            monkeypatch.delenv(f"PERMSTATE_{name}", raising=False)

        s = Settings(_env_file=None)

        assert s.read_only is False
        assert s.advanced_notifications is False
        assert s.notification_delay == 0.05

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("PERMSTATE_READ_ONLY", "true")
        monkeypatch.setenv("PERMSTATE_NOTIFICATION_DELAY", "0.2")

        s = Settings(_env_file=None)

        assert s.read_only is True
        assert s.notification_delay == 0.2

    def test_negative_delay_rejected(self, monkeypatch):
        monkeypatch.setenv("PERMSTATE_NOTIFICATION_DELAY", "-1")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_controller_falls_back_to_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "read_only", True)

        assert PermissionStateController().read_only is True
        assert PermissionStateController(read_only=False).read_only is False
