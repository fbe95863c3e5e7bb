"""Set helpers for permission bookkeeping.

Permissions are tracked as flat sets of composite string keys:

    submodule key:   "<module>-<submodule>"
    permission key:  "<module>-<submodule>-<permission>"

Everything here is pure and allocation-light.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Set

KEY_SEPARATOR = "-"


# ── Composite keys ─────────────────────────────────────────────


def submodule_key(module: str, submodule: str) -> str:
    return f"{module}{KEY_SEPARATOR}{submodule}"


def permission_key(module: str, submodule: str, permission: str) -> str:
    return f"{module}{KEY_SEPARATOR}{submodule}{KEY_SEPARATOR}{permission}"


# ── Set algebra ────────────────────────────────────────────────


def sets_equal(a: Set[str], b: Set[str]) -> bool:
    """True iff both sets have the same size and every element of a is in b."""
    if len(a) != len(b):
        return False
    for item in a:
        if item not in b:
            return False
    return True


def partition_by_prefix(items: Iterable[str], prefix: str) -> list[str]:
    """Return the elements that start with "<prefix>-", in iteration order."""
    marker = f"{prefix}{KEY_SEPARATOR}"
    return [item for item in items if item.startswith(marker)]


def is_fully_selected(current: Collection[str], all_permissions: Collection[str]) -> bool:
    """An empty permission list is never fully selected."""
    return len(current) == len(all_permissions) and len(all_permissions) > 0
