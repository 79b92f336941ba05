"""SQLAlchemy Core tables for the station directory and module toggles."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, MetaData, String, Table, Text

from station_access.common.time import utc_now

__all__ = [
    "NAMING_CONVENTION",
    "build_module_access_table",
    "build_stations_table",
    "metadata",
]

NAMING_CONVENTION: dict[str, str] = {
    "ix": "%(table_name)s_%(column_0_name)s_idx",
    "uq": "%(table_name)s_%(column_0_name)s_key",
    "ck": "%(table_name)s_%(constraint_name)s_check",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


def build_stations_table(name: str = "stations", *, meta: MetaData = metadata) -> Table:
    if name in meta.tables:
        return meta.tables[name]
    return Table(
        name,
        meta,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(255), nullable=False, unique=True),
        Column("label", String(255), nullable=True),
        Column("color", String(64), nullable=True),
        Column("address", Text, nullable=True),
        Column("phone", String(32), nullable=True),
        Column("manager_name", String(255), nullable=True),
        Column("status", String(32), nullable=False, default="active"),
        Column(
            "updated_at",
            DateTime(timezone=True),
            nullable=False,
            default=utc_now,
            onupdate=utc_now,
        ),
    )


def build_module_access_table(
    name: str = "module_access", *, meta: MetaData = metadata
) -> Table:
    if name in meta.tables:
        return meta.tables[name]
    return Table(
        name,
        meta,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("module_key", String(100), nullable=False, unique=True),
        Column("display_name", String(255), nullable=False, default=""),
        Column("create_enabled", Boolean, nullable=False, default=False),
        Column("edit_enabled", Boolean, nullable=False, default=False),
        Column("delete_enabled", Boolean, nullable=False, default=False),
        Column("view_enabled", Boolean, nullable=False, default=True),
        Column(
            "updated_at",
            DateTime(timezone=True),
            nullable=False,
            default=utc_now,
            onupdate=utc_now,
        ),
    )
