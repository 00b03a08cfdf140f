# Overview: Closed set of caller roles used by every permission decision.

from __future__ import annotations

import enum
from typing import NoReturn


class Role(str, enum.Enum):
    """
    Organizational roles.

    Every permission decision point branches over ALL members and ends in
    unhandled_role(); adding a member makes those call sites fail loudly
    until they are revisited.
    """
    HR = "HR"
    ASM = "ASM"
    STORE_MANAGER = "STORE_MANAGER"


def parse_role(value) -> Role | None:
    """Coerce stored/incoming role values; unknown strings map to None (no scope)."""
    if value is None or isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        return None


def unhandled_role(role) -> NoReturn:
    raise ValueError(f"Unhandled role: {role!r}")
