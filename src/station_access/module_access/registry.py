"""Canonical module catalogue for per-module CRUD toggles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, get_args

ModuleAction = Literal["create", "edit", "delete", "view"]

MODULE_ACTIONS: tuple[ModuleAction, ...] = get_args(ModuleAction)


@dataclass(frozen=True)
class ModuleDef:
    """Static module definition seeded by ``initialize_defaults``."""

    key: str
    display_name: str
    create_enabled: bool = False
    edit_enabled: bool = False
    delete_enabled: bool = False
    view_enabled: bool = True

    def to_row(self) -> dict[str, object]:
        return {
            "module_key": self.key,
            "display_name": self.display_name,
            "create_enabled": self.create_enabled,
            "edit_enabled": self.edit_enabled,
            "delete_enabled": self.delete_enabled,
            "view_enabled": self.view_enabled,
        }


def _module(*, key: str, display_name: str) -> ModuleDef:
    return ModuleDef(key=key.strip().lower(), display_name=display_name)


MODULES: tuple[ModuleDef, ...] = (
    _module(key="products", display_name="Products"),
    _module(key="employees", display_name="Employees"),
    _module(key="sales", display_name="Sales Reports"),
    _module(key="vendors", display_name="Vendors"),
    _module(key="orders", display_name="Orders"),
    _module(key="licenses", display_name="Licenses & Certificates"),
    _module(key="salary", display_name="Salary Records"),
    _module(key="delivery", display_name="Delivery Records"),
)

MODULE_REGISTRY: dict[str, ModuleDef] = {definition.key: definition for definition in MODULES}


def flag_column(action: str) -> str:
    """Map an action name onto its ``<action>_enabled`` column."""

    if action not in MODULE_ACTIONS:
        raise ValueError(f"Unknown module action: {action!r}")
    return f"{action}_enabled"


__all__ = [
    "MODULES",
    "MODULE_ACTIONS",
    "MODULE_REGISTRY",
    "ModuleAction",
    "ModuleDef",
    "flag_column",
]
