"""Canonical roles and the alias table that feeds them."""

from __future__ import annotations

import enum
import re
from typing import Any


class CanonicalRole(str, enum.Enum):
    """Roles used internally regardless of how profiles spell them."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    GUEST = "guest"


ROLE_ALIASES: dict[str, CanonicalRole] = {
    "admin": CanonicalRole.ADMIN,
    "administrator": CanonicalRole.ADMIN,
    "super admin": CanonicalRole.ADMIN,
    "superadmin": CanonicalRole.ADMIN,
    "manager": CanonicalRole.MANAGER,
    "management": CanonicalRole.MANAGER,
    "employee": CanonicalRole.EMPLOYEE,
    "staff": CanonicalRole.EMPLOYEE,
    "guest": CanonicalRole.GUEST,
    "viewer": CanonicalRole.GUEST,
}

# Roles that may pick the aggregate "All Stations" option.
AGGREGATE_ROLES: frozenset[CanonicalRole] = frozenset(
    {CanonicalRole.ADMIN, CanonicalRole.MANAGER}
)

_SEPARATORS = re.compile(r"[\s_\-]+")


def canonical_role(value: Any) -> CanonicalRole:
    """Collapse a raw role value onto :class:`CanonicalRole`; unknown values are guests."""

    if isinstance(value, CanonicalRole):
        return value
    if not isinstance(value, str):
        return CanonicalRole.GUEST
    key = _SEPARATORS.sub(" ", value).strip().lower()
    return ROLE_ALIASES.get(key, CanonicalRole.GUEST)


__all__ = ["AGGREGATE_ROLES", "CanonicalRole", "ROLE_ALIASES", "canonical_role"]
