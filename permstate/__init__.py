"""Hierarchical permission state for user and role permission editing."""

from permstate.catalog import PermissionCatalog  # noqa: F401
from permstate.models.permission_state import PermissionState  # noqa: F401
from permstate.schemas.permissions import PermissionData, SavedSelection  # noqa: F401
from permstate.services.controller import (  # noqa: F401
    PERMISSIONS_FIELD,
    ControllerStatus,
    PermissionStateController,
)

__version__ = "0.1.0"
