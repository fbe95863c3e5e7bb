"""Permission catalog: module → submodule → permission names.

Design:
  - The catalog is supplied by a collaborator (usually fetched from an API)
    and is treated as read-only.  `PermissionCatalog` wraps it in immutable
    containers so nothing downstream can mutate it.
  - Raw payloads arrive as `{module: {"submodules": {sub: [perm, ...]}}}`.
    `PermissionCatalog.from_raw()` is lenient by default: a module without
    submodules is kept with none, a submodule whose permissions are not a
    list is dropped, and a warning is logged.  With `strict=True` the same
    problems raise `CatalogFormatError` instead.
  - Module and submodule order follow the payload (it drives display order).

Lookups by name are exact; `find_permissions()` additionally falls back to a
case-insensitive, whitespace-trimmed match, since upstream names are not
always normalised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from permstate.exceptions import CatalogFormatError

logger = logging.getLogger("permstate.catalog")

Submodules = Mapping[str, tuple[str, ...]]

_EMPTY: Submodules = MappingProxyType({})


def _normalise(name: str) -> str:
    return name.strip().lower()


def _reject(strict: bool, message: str, path: str) -> None:
    if strict:
        raise CatalogFormatError(message, path=path)
    logger.warning("Skipping malformed catalog entry %s: %s", path, message)


class PermissionCatalog:
    """Immutable view of the module/submodule/permission hierarchy."""

    __slots__ = ("_modules",)

    def __init__(self, modules: Mapping[str, Mapping[str, list[str] | tuple[str, ...]]] | None = None):
        frozen: dict[str, Submodules] = {}
        for module, submodules in (modules or {}).items():
            frozen[module] = MappingProxyType(
                {sub: tuple(perms) for sub, perms in submodules.items()}
            )
        self._modules: Mapping[str, Submodules] = MappingProxyType(frozen)

    # ── Construction ─────────────────────────────────────────

    @classmethod
    def from_raw(cls, raw: Any, *, strict: bool = False) -> PermissionCatalog:
        """Build a catalog from a collaborator payload.

        Accepts an existing catalog (returned as-is), `None` (empty catalog),
        or the raw mapping shape described in the module docstring.
        """
        if isinstance(raw, PermissionCatalog):
            return raw
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            _reject(strict, f"expected a mapping, got {type(raw).__name__}", "<root>")
            return cls()

        modules: dict[str, dict[str, list[str]]] = {}
        for module, entry in raw.items():
            if not isinstance(module, str):
                _reject(strict, "module name must be a string", repr(module))
                continue

            submodules = entry.get("submodules") if isinstance(entry, Mapping) else None
            if submodules is None:
                # A module with no submodules is valid: it just has nothing to select.
                modules[module] = {}
                continue
            if not isinstance(submodules, Mapping):
                _reject(strict, "submodules must be a mapping", module)
                modules[module] = {}
                continue

            parsed: dict[str, list[str]] = {}
            for sub, perms in submodules.items():
                path = f"{module}.{sub}"
                if not isinstance(perms, (list, tuple)):
                    _reject(strict, "permissions must be a list", path)
                    continue
                names = [p for p in perms if isinstance(p, str)]
                if len(names) != len(perms):
                    _reject(strict, "permission names must be strings", path)
                parsed[sub] = names
            modules[module] = parsed

        return cls(modules)

    # ── Queries ──────────────────────────────────────────────

    def __bool__(self) -> bool:
        return bool(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module: object) -> bool:
        return module in self._modules

    def __iter__(self):
        return iter(self._modules)

    def __repr__(self) -> str:
        return f"<PermissionCatalog(modules={list(self._modules)!r})>"

    @property
    def module_names(self) -> list[str]:
        return list(self._modules)

    def submodules(self, module: str) -> Submodules:
        """Submodules of `module`; empty for unknown modules."""
        return self._modules.get(module, _EMPTY)

    def permissions(self, module: str, submodule: str) -> tuple[str, ...] | None:
        """Exact lookup.  None when the module or submodule is unknown."""
        return self.submodules(module).get(submodule)

    def find_permissions(self, module: str, submodule: str) -> tuple[str, ...] | None:
        """Like `permissions()`, falling back to a case-insensitive match."""
        exact = self.permissions(module, submodule)
        if exact is not None:
            return exact

        wanted_module = _normalise(module)
        for name, submodules in self._modules.items():
            if _normalise(name) != wanted_module:
                continue
            wanted_sub = _normalise(submodule)
            for sub_name, perms in submodules.items():
                if _normalise(sub_name) == wanted_sub:
                    return perms
            return None
        return None
