"""Colour classes for station badges, rows and print views."""

from __future__ import annotations

import re
from typing import Literal

ColorVariant = Literal["badge", "background", "text-badge", "border", "print"]

DEFAULT_STATION_COLOR = "bg-gray-500"
ALL_STATIONS_COLOR = "bg-indigo-600"

_BADGE_PATTERN = re.compile(r"^bg-(?P<hue>[a-z]+)-(?P<shade>\d{2,3})$")


def station_color(color: str | None) -> str:
    """Return the badge class for a station, falling back to a neutral grey."""

    if color and _BADGE_PATTERN.match(color.strip()):
        return color.strip()
    return DEFAULT_STATION_COLOR


def color_variant(color: str | None, variant: ColorVariant = "badge") -> str:
    """Derive the class for ``variant`` from a ``bg-<hue>-<shade>`` badge colour."""

    badge = station_color(color)
    match = _BADGE_PATTERN.match(badge)
    hue = match.group("hue") if match else "gray"
    if variant == "background":
        return f"bg-{hue}-50 border-{hue}-200 hover:bg-{hue}-100"
    if variant == "text-badge":
        return f"bg-{hue}-100 text-{hue}-800"
    if variant == "border":
        return f"border-{hue}-200"
    if variant == "print":
        return f"{badge} text-white"
    return badge


__all__ = [
    "ALL_STATIONS_COLOR",
    "ColorVariant",
    "DEFAULT_STATION_COLOR",
    "color_variant",
    "station_color",
]
