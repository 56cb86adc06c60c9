"""Errors raised by the station services."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .duplicate_service import DuplicateCheckResult


class QueryFailed(Exception):
    """Raised when a read against the station store fails."""


class DeleteFailed(Exception):
    """Raised when a single station could not be deleted."""

    def __init__(self, station_id: str, message: str):
        super().__init__(message)
        self.station_id = station_id


class IndexingFailed(Exception):
    """Raised when records handed to the duplicate indexer are malformed."""


class StationNotFoundError(Exception):
    """Raised when a requested station id does not exist."""


class DuplicateStationError(Exception):
    """Raised when a new station collides with an existing one."""

    def __init__(self, result: "DuplicateCheckResult"):
        station = result.duplicate_station
        label = f"{station.name} (ID: {station.id})" if station else "unknown station"
        super().__init__(f"Duplicate station ({result.duplicate_type}): {label}")
        self.result = result
