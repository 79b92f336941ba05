from __future__ import annotations

import pytest

from station_access.access.normalizer import (
    NormalizedContext,
    UserAccessContext,
    decode_string_list,
    normalize_access,
    normalize_profile,
)
from station_access.access.roles import CanonicalRole, canonical_role


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Administrator", CanonicalRole.ADMIN),
        ("super_admin", CanonicalRole.ADMIN),
        ("Super-Admin", CanonicalRole.ADMIN),
        ("  Management ", CanonicalRole.MANAGER),
        ("staff", CanonicalRole.EMPLOYEE),
        ("viewer", CanonicalRole.GUEST),
        ("janitor", CanonicalRole.GUEST),
        (None, CanonicalRole.GUEST),
        (42, CanonicalRole.GUEST),
    ],
)
def test_canonical_role_aliases(raw, expected) -> None:
    assert canonical_role(raw) is expected


def test_decode_string_list_accepts_lists_and_json() -> None:
    assert decode_string_list(["view_north", " view_south "]) == ("view_north", "view_south")
    assert decode_string_list('["view_north", "view_north"]') == ("view_north",)


@pytest.mark.parametrize(
    "garbage",
    [None, "", "not json", '{"a": 1}', "42", 17, {"view_north": True}, "[[[["],
)
def test_decode_string_list_garbage_is_empty(garbage) -> None:
    assert decode_string_list(garbage) == ()


def test_decode_string_list_drops_non_strings_and_blanks() -> None:
    assert decode_string_list(["a", 1, None, "  ", "b", "a"]) == ("a", "b")


def test_normalization_is_idempotent() -> None:
    first = normalize_access("Manager", '["view_north"]', ["North"])
    second = normalize_profile(first)

    assert second == first
    assert normalize_profile(second) == first


def test_normalize_profile_accepts_legacy_keys() -> None:
    ctx = normalize_profile(
        {
            "role": "Employee",
            "detailed_permissions": '["view_north"]',
            "stationAccess": ["South"],
            "email": "someone@example.com",
        }
    )

    assert ctx.role is CanonicalRole.EMPLOYEE
    assert ctx.permissions == ("view_north",)
    assert ctx.station_access == ("South",)


def test_normalize_profile_from_model() -> None:
    profile = UserAccessContext(role="admin", permissions=None, station_access="garbage")

    ctx = normalize_profile(profile)

    assert ctx == NormalizedContext(role=CanonicalRole.ADMIN)


@pytest.mark.parametrize("profile", [None, 12, "admin", ["admin"]])
def test_normalize_profile_unknown_shapes_are_guests(profile) -> None:
    assert normalize_profile(profile) == NormalizedContext()
