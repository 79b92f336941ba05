"""Pure capability projection over a user context, the directory and module toggles."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from station_access.module_access.schemas import ModuleActions, ModulePermission
from station_access.stations.colors import ALL_STATIONS_COLOR, station_color
from station_access.stations.schemas import (
    ALL_STATIONS_LABEL,
    ALL_STATIONS_VALUE,
    Station,
    StationOption,
)

from .normalizer import NormalizedContext
from .roles import AGGREGATE_ROLES

VIEW_ALL_STATIONS = "view_all_stations"

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")

FAIL_OPEN_ACTIONS = ModuleActions()
FAIL_CLOSED_ACTIONS = ModuleActions(create=False, edit=False, delete=False, view=False)


@dataclass(frozen=True, slots=True)
class CapabilityProjection:
    """Per-request answer derived from the current inputs; never cached."""

    accessible_stations: tuple[str, ...]
    can_select_all: bool
    actions: ModuleActions = FAIL_OPEN_ACTIONS
    module_key: str | None = None


def station_permission_key(name: str) -> str:
    """``"Amoco Rosedale"`` -> ``"view_amocorosedale"``."""

    return "view_" + _NON_ALNUM.sub("", name.lower())


def underscored_permission_key(name: str) -> str:
    """``"Amoco Rosedale"`` -> ``"view_amoco_rosedale"``, the form older grants use."""

    return "view_" + _WHITESPACE.sub("_", name.lower())


def can_select_all(ctx: NormalizedContext) -> bool:
    return ctx.role in AGGREGATE_ROLES or ctx.has_permission(VIEW_ALL_STATIONS)


def is_station_accessible(ctx: NormalizedContext, name: str) -> bool:
    # Historical profiles carry the compact key, the underscored key or the
    # verbatim station name.
    return (
        ctx.has_permission(station_permission_key(name))
        or ctx.has_permission(underscored_permission_key(name))
        or name in ctx.station_access
    )


def accessible_stations(
    ctx: NormalizedContext,
    directory: Sequence[Station],
) -> list[Station]:
    if can_select_all(ctx):
        return list(directory)
    return [station for station in directory if is_station_accessible(ctx, station.name)]


def accessible_station_names(
    ctx: NormalizedContext,
    directory: Sequence[Station],
) -> list[str]:
    return [station.name for station in accessible_stations(ctx, directory)]


def aggregate_option() -> StationOption:
    return StationOption(
        value=ALL_STATIONS_VALUE,
        label=ALL_STATIONS_LABEL,
        color=ALL_STATIONS_COLOR,
    )


def station_option(station: Station) -> StationOption:
    return StationOption(
        value=station.name,
        label=station.display_label,
        color=station_color(station.color),
    )


def station_options(
    ctx: NormalizedContext,
    directory: Sequence[Station],
    include_all: bool = True,
) -> list[StationOption]:
    options = [station_option(station) for station in accessible_stations(ctx, directory)]
    if include_all and can_select_all(ctx):
        options.insert(0, aggregate_option())
    return options


def find_module(
    registry: Sequence[ModulePermission],
    module_key: str,
) -> ModulePermission | None:
    for row in registry:
        if row.matches(module_key):
            return row
    return None


def module_actions(
    module_key: str,
    registry: Sequence[ModulePermission] | None,
    *,
    enabled: bool = True,
) -> ModuleActions:
    """Resolve CRUD actions for ``module_key``.

    An empty or disabled registry permits everything; once rows exist, a module
    without a row permits nothing.
    """

    if not enabled or not registry:
        return FAIL_OPEN_ACTIONS
    row = find_module(registry, module_key)
    if row is None:
        return FAIL_CLOSED_ACTIONS
    return ModuleActions(
        create=row.create_enabled,
        edit=row.edit_enabled,
        delete=row.delete_enabled,
        view=row.view_enabled,
    )


def project(
    ctx: NormalizedContext,
    directory: Sequence[Station],
    module_key: str | None = None,
    registry: Sequence[ModulePermission] | None = None,
    *,
    registry_enabled: bool = True,
) -> CapabilityProjection:
    actions = (
        module_actions(module_key, registry, enabled=registry_enabled)
        if module_key is not None
        else FAIL_OPEN_ACTIONS
    )
    return CapabilityProjection(
        accessible_stations=tuple(accessible_station_names(ctx, directory)),
        can_select_all=can_select_all(ctx),
        actions=actions,
        module_key=module_key,
    )


__all__ = [
    "CapabilityProjection",
    "FAIL_CLOSED_ACTIONS",
    "FAIL_OPEN_ACTIONS",
    "VIEW_ALL_STATIONS",
    "accessible_station_names",
    "accessible_stations",
    "aggregate_option",
    "can_select_all",
    "find_module",
    "is_station_accessible",
    "module_actions",
    "project",
    "station_option",
    "station_options",
    "station_permission_key",
    "underscored_permission_key",
]
