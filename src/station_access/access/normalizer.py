"""Decode heterogeneous user profiles into one canonical access context.

Profiles reach this layer in whatever shape the profile table stored them:
roles spelled ``"Administrator"`` or ``"Management"``, permissions as a JSON
string, a list, or nothing at all. :func:`normalize_profile` is the single
place that looks at those raw shapes; everything downstream works with
:class:`NormalizedContext` only.

Malformed data degrades to *no extra permissions*. Nothing in here raises.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .roles import CanonicalRole, canonical_role


class UserAccessContext(BaseModel):
    """Raw, externally supplied identity projection of an authenticated user."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    role: Any = None
    permissions: Any = Field(
        default=None,
        validation_alias=AliasChoices("permissions", "detailed_permissions"),
    )
    station_access: Any = Field(
        default=None,
        validation_alias=AliasChoices("station_access", "stationAccess", "resource_access"),
    )


@dataclass(frozen=True, slots=True)
class NormalizedContext:
    """Canonical access context: a role plus two de-duplicated string tuples."""

    role: CanonicalRole = CanonicalRole.GUEST
    permissions: tuple[str, ...] = ()
    station_access: tuple[str, ...] = ()

    def has_permission(self, key: str) -> bool:
        return key in self.permissions


def decode_string_list(value: Any) -> tuple[str, ...]:
    """Decode a list-or-JSON-string payload into unique, stripped strings."""

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, RecursionError):
            return ()
        if not isinstance(value, list):
            return ()
    elif not isinstance(value, (list, tuple)):
        return ()
    return _unique_strings(value)


def normalize_access(
    role: Any = None,
    permissions: Any = None,
    station_access: Any = None,
) -> NormalizedContext:
    return NormalizedContext(
        role=canonical_role(role),
        permissions=decode_string_list(permissions),
        station_access=decode_string_list(station_access),
    )


def normalize_profile(
    profile: UserAccessContext | NormalizedContext | Mapping[str, Any] | None,
) -> NormalizedContext:
    """Normalize any supported profile shape; unknown shapes become a guest."""

    if isinstance(profile, NormalizedContext):
        return normalize_access(profile.role, profile.permissions, profile.station_access)
    if isinstance(profile, Mapping):
        profile = UserAccessContext.model_validate(dict(profile))
    if isinstance(profile, UserAccessContext):
        return normalize_access(profile.role, profile.permissions, profile.station_access)
    return NormalizedContext()


def _unique_strings(items: Iterable[Any]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if text and text not in seen:
            seen.add(text)
            out.append(text)
    return tuple(out)


__all__ = [
    "NormalizedContext",
    "UserAccessContext",
    "decode_string_list",
    "normalize_access",
    "normalize_profile",
]
