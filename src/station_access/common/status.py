from __future__ import annotations

import enum


class LoadStatus(str, enum.Enum):
    """Lifecycle of a cached table."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


__all__ = ["LoadStatus"]
