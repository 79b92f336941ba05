"""Record filters for station-scoped tables."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from station_access.stations.schemas import ALL_STATIONS_VALUE

AGGREGATE_SELECTIONS = frozenset({ALL_STATIONS_VALUE, "ALL_STATIONS"})
NO_ACCESS_SENTINEL = "__NO_ACCESS__"
STATION_FIELD = "station"


@dataclass(frozen=True, slots=True)
class RecordFilter:
    """Equality filter handed to the backend ``list`` call of a scoped table."""

    name: str
    value: str
    op: str = "eq"


def is_aggregate_selection(selected: str | None) -> bool:
    return selected in AGGREGATE_SELECTIONS


def station_record_filters(
    selected: str | None,
    accessible: Sequence[str],
    *,
    field: str = STATION_FIELD,
) -> list[RecordFilter] | None:
    """Filters for the current station selection; ``None`` means "do not filter".

    With the aggregate selected, a user with no station sees nothing, a user
    with one station is pinned to it, and anyone else is unfiltered.
    """

    if not selected or is_aggregate_selection(selected):
        if not accessible:
            return [RecordFilter(name=field, value=NO_ACCESS_SENTINEL)]
        if len(accessible) == 1:
            return [RecordFilter(name=field, value=accessible[0])]
        return None
    return [RecordFilter(name=field, value=selected)]


__all__ = [
    "AGGREGATE_SELECTIONS",
    "NO_ACCESS_SENTINEL",
    "RecordFilter",
    "is_aggregate_selection",
    "station_record_filters",
]
