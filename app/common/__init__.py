"""Shared exceptions and logging helpers."""

__all__ = [
    "exceptions",
    "logger",
]
