"""Core components shared by every REST layer of the SDK."""

from __future__ import annotations

from .errors import ErrorFactory

__all__ = [
    "ErrorFactory",
]
