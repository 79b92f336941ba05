"""Per-module CRUD toggles."""
