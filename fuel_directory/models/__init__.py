"""Database models for the fuel station directory."""

from .base import Base, TimestampMixin
from .station import Station

__all__ = [
    "Base",
    "TimestampMixin",
    "Station",
]
