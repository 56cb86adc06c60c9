"""Nearest-station search with an ordered-query fast path and a full-scan fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from ..config import settings
from .errors import QueryFailed
from .geo_service import GeoService
from .records import StationRecord
from .station_repository import StationRepository

logger = logging.getLogger("geo")


@dataclass
class FastPathResult:
    """Stations as ordered by the store, with distances computed locally."""

    stations: List[StationRecord]
    strategy: str = "fast_path"


@dataclass
class FallbackResult:
    """Stations ranked by scanning the whole dataset."""

    stations: List[StationRecord]
    reason: str
    strategy: str = "fallback"


@dataclass
class FastPathFailure:
    reason: str


NearestResult = Union[FastPathResult, FallbackResult]


class NearestStationFinder:
    """Finds the closest stations to a point.

    The ordered query is an optimisation that depends on the store; when it
    reports a failure the finder scans every station instead. An empty result
    from the ordered query is a valid answer and does not trigger the scan.
    """

    def __init__(
        self,
        repository: StationRepository,
        geo_service: Optional[GeoService] = None,
        fast_path_enabled: Optional[bool] = None,
    ):
        self._repository = repository
        self._geo = geo_service or GeoService()
        if fast_path_enabled is None:
            fast_path_enabled = settings.nearest_fast_path_enabled
        self._fast_path_enabled = fast_path_enabled

    async def find_nearest(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        max_distance_meters: Optional[float] = None,
    ) -> List[StationRecord]:
        """Return up to `limit` stations closest first, annotated with `distance_meters`."""
        result = await self.search(latitude, longitude, limit, max_distance_meters)
        return result.stations

    async def search(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        max_distance_meters: Optional[float] = None,
    ) -> NearestResult:
        """Run the search and report which strategy produced the answer.

        Raises:
            QueryFailed: If the fallback scan cannot read the dataset.
        """
        if limit <= 0:
            return FastPathResult(stations=[])

        if not self._fast_path_enabled:
            return await self._fallback(
                latitude, longitude, limit, max_distance_meters, reason="fast path disabled"
            )

        outcome = await self._fast_path(latitude, longitude, limit, max_distance_meters)
        if isinstance(outcome, FastPathFailure):
            logger.warning(
                "Ordered nearest-station query failed, scanning all stations: %s",
                outcome.reason,
            )
            return await self._fallback(
                latitude, longitude, limit, max_distance_meters, reason=outcome.reason
            )
        return outcome

    async def _fast_path(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        max_distance_meters: Optional[float],
    ) -> Union[FastPathResult, FastPathFailure]:
        try:
            rows = await self._repository.find_ordered_by_distance(latitude, longitude, limit)
        except QueryFailed as exc:
            return FastPathFailure(reason=str(exc))

        stations = []
        for row in rows:
            distance = self._geo.distance_meters(latitude, longitude, row.latitude, row.longitude)
            if max_distance_meters is not None and distance > max_distance_meters:
                continue
            stations.append(row.with_distance(distance))
        return FastPathResult(stations=stations)

    async def _fallback(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        max_distance_meters: Optional[float],
        reason: str,
    ) -> FallbackResult:
        rows = await self._repository.fetch_all()
        stations = self._geo.rank_by_distance(
            latitude,
            longitude,
            rows,
            max_results=limit,
            max_distance_meters=max_distance_meters,
        )
        return FallbackResult(stations=stations, reason=reason)
