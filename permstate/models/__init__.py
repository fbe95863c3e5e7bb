"""Aggregate model imports."""

from permstate.models.permission_state import PermissionState  # noqa: F401
