"""Pydantic schemas for module access rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .registry import MODULE_ACTIONS, ModuleAction, flag_column


class ModulePermission(BaseModel):
    """Per-module CRUD toggle record."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: int | str
    module_key: str = Field(
        min_length=1,
        validation_alias=AliasChoices("module_key", "module_name"),
    )
    display_name: str = ""
    create_enabled: bool = False
    edit_enabled: bool = False
    delete_enabled: bool = False
    view_enabled: bool = True
    updated_at: datetime | None = None

    @field_validator("module_key", mode="before")
    @classmethod
    def _v_module_key(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    def flag(self, action: ModuleAction) -> bool:
        return bool(getattr(self, flag_column(action)))

    def with_flag(self, action: ModuleAction, value: bool) -> ModulePermission:
        return self.model_copy(update={flag_column(action): value})

    def matches(self, module_key: str) -> bool:
        return self.module_key == module_key.strip().lower()


class ModuleActions(BaseModel):
    """Resolved create/edit/delete/view answer for one module."""

    model_config = ConfigDict(frozen=True)

    create: bool = True
    edit: bool = True
    delete: bool = True
    view: bool = True

    def allows(self, action: str) -> bool:
        if action not in MODULE_ACTIONS:
            return False
        return bool(getattr(self, action))


__all__ = ["ModuleActions", "ModulePermission"]
