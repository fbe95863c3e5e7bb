"""Pydantic schemas exchanged with the hosting form.

Field names are snake_case in Python and camelCase on the wire, because the
form persists the projection as-is (`enabledModules`, `selectedPermissions`,
`activeModule`, `activeSubmodule`).  Both spellings are accepted on input.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from permstate.exceptions import SelectionFormatError

logger = logging.getLogger("permstate.schemas")


class _FormModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Projection sent to the form ──────────────────────────────

class PermissionData(_FormModel):
    enabled_modules: list[str] = []
    selected_permissions: list[str] = []
    active_module: str | None = None
    active_submodule: str | None = None

    def as_form_value(self) -> dict[str, Any]:
        """Plain dict with camelCase keys, ready to store in form data."""
        return self.model_dump(by_alias=True)


# ── Previously saved selection ───────────────────────────────

class SavedSelection(_FormModel):
    """Selection loaded from a saved entity (or the current form value).

    Both lists are optional: a value missing either one is not usable for
    seeding and the controller falls back to its defaults.
    """
    enabled_modules: list[str] | None = None
    selected_permissions: list[str] | None = None
    active_module: str | None = None
    active_submodule: str | None = None

    @property
    def is_usable(self) -> bool:
        return self.enabled_modules is not None and self.selected_permissions is not None

    def has_focus_field(self, name: str) -> bool:
        """True when `name` was present in the source value (even as None)."""
        return name in self.model_fields_set

    @classmethod
    def from_raw(cls, raw: Any, *, strict: bool = False) -> SavedSelection | None:
        """Parse a form value.

        Lenient mode returns None for anything that does not validate, so
        callers can treat it exactly like a missing selection.
        """
        if raw is None or isinstance(raw, SavedSelection):
            return raw
        if isinstance(raw, PermissionData):
            raw = raw.model_dump()
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            if strict:
                raise SelectionFormatError(
                    "Invalid permission selection",
                    errors=[
                        {"field": " -> ".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
                        for err in exc.errors()
                    ],
                ) from exc
            logger.warning("Ignoring malformed permission selection: %d error(s)", exc.error_count())
            return None


# ── Read models for rendering ────────────────────────────────

class ModuleRow(BaseModel):
    """One row per catalog module, in catalog order."""
    id: str
    module: str
    submodules: dict[str, list[str]]
    is_module_enabled: bool
    selected_count: int = 0


class SubmoduleSummary(BaseModel):
    """Select-all checkbox state for one submodule."""
    key: str
    selected: list[str]
    total: int
    all_selected: bool
