"""Result envelopes returned by mutating operations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OperationResult(BaseModel):
    """Outcome of a store mutation; failures carry a user-facing message."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="Whether the mutation was applied")
    error: str | None = Field(default=None, description="Reason the mutation was refused")

    @classmethod
    def ok(cls) -> OperationResult:
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> OperationResult:
        return cls(success=False, error=error)

    def __bool__(self) -> bool:
        return self.success


__all__ = ["OperationResult"]
