"""Service helpers for managing station records."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .duplicate_service import DuplicateChecker
from .errors import DuplicateStationError, StationNotFoundError
from .records import StationRecord
from .station_repository import SqlStationRepository

logger = logging.getLogger("stations")


class StationService:
    """Lists, adds and removes stations, checking for duplicates before insert."""

    def __init__(
        self,
        repository: SqlStationRepository,
        checker: Optional[DuplicateChecker] = None,
    ):
        self._repository = repository
        self._checker = checker or DuplicateChecker(repository)

    async def list_stations(self, region: Optional[str] = None) -> List[StationRecord]:
        """Return all stations, or only those of `region` ("all" means every region)."""
        if not region or region == "all":
            return await self._repository.fetch_all()
        return await self._repository.list_by_region(region)

    async def get_station(self, station_id: str) -> StationRecord:
        station = await self._repository.get_by_id(station_id)
        if station is None:
            raise StationNotFoundError(f"Unknown station id: {station_id}")
        return station

    async def add_station(
        self, fields: Dict[str, Any], skip_duplicate_check: bool = False
    ) -> StationRecord:
        """
        Insert a new station.

        Args:
            fields: Column values for the new station.
            skip_duplicate_check: Insert even if a duplicate exists.

        Raises:
            DuplicateStationError: If a station with the same name or within
                100 meters already exists.
            QueryFailed: If the duplicate check or the insert fails.
        """
        if skip_duplicate_check:
            logger.info("Skipping duplicate check for %s", fields.get("name"))
        else:
            result = await self._checker.check(
                fields["name"], fields["latitude"], fields["longitude"]
            )
            if result.is_duplicate:
                logger.info(
                    "Rejected %s: %s duplicate of %s",
                    fields["name"],
                    result.duplicate_type,
                    result.duplicate_station.id,
                )
                raise DuplicateStationError(result)

        return await self._repository.add(fields)

    async def delete_station(self, station_id: str) -> None:
        """Delete a station, raising `StationNotFoundError` if it does not exist."""
        await self.get_station(station_id)
        await self._repository.delete_by_id(station_id)
