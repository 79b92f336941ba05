"""Common utilities and helpers shared by the directory and registry stores."""

__all__ = [
    "logging",
    "observers",
    "results",
    "status",
    "store",
    "time",
]
