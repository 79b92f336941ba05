"""Pydantic schemas for stations and their dropdown options."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ALL_STATIONS_VALUE = "ALL"
ALL_STATIONS_LABEL = "All Stations"

StationId = int | str


class StationBase(BaseModel):
    """Fields shared by persisted stations and creation payloads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("name", "station_name"),
        description="Unique display name used as the filter value",
    )
    label: str | None = Field(default=None, description="Optional display label")
    color: str | None = Field(default=None, description="Badge colour class, e.g. bg-blue-500")
    address: str | None = None
    phone: str | None = None
    manager_name: str | None = None
    status: str = Field(default="active")

    @field_validator("name", mode="before")
    @classmethod
    def _v_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def _v_status(cls, v: Any) -> str:
        return str(v or "active").strip().lower()

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id", "updated_at"}, exclude_none=True)


class StationCreate(StationBase):
    """Payload for :meth:`StationDirectory.add`."""


class Station(StationBase):
    """A persisted station row."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: StationId
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updated_at", "last_updated"),
    )

    @property
    def display_label(self) -> str:
        return self.label or self.name


class StationUpdate(BaseModel):
    """Partial update for :meth:`StationDirectory.update`.

    Only the fields present in the payload are written; an explicit ``None``
    clears an optional column.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: StationId
    name: str | None = Field(
        default=None,
        min_length=1,
        validation_alias=AliasChoices("name", "station_name"),
    )
    label: str | None = None
    color: str | None = None
    address: str | None = None
    phone: str | None = None
    manager_name: str | None = None
    status: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _v_name(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("name cannot be cleared")
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def _v_status(cls, v: Any) -> str:
        return str(v or "active").strip().lower()

    @classmethod
    def from_station(cls, station: Station) -> StationUpdate:
        """Patch carrying only the fields that were explicitly set on ``station``."""

        fields = station.model_fields_set - {"id", "updated_at"}
        return cls.model_validate({"id": station.id, **station.model_dump(include=fields)})

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id"}, exclude_unset=True)


class StationOption(BaseModel):
    """UI-facing projection of a station, or the synthetic aggregate entry."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    color: str | None = None

    @property
    def is_aggregate(self) -> bool:
        return self.value == ALL_STATIONS_VALUE


__all__ = [
    "ALL_STATIONS_LABEL",
    "ALL_STATIONS_VALUE",
    "Station",
    "StationBase",
    "StationCreate",
    "StationId",
    "StationOption",
    "StationUpdate",
]
