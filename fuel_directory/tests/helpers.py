"""Test helpers: station factories and an in-memory station store."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

from fuel_directory.services.errors import DeleteFailed, QueryFailed
from fuel_directory.services.geo_service import GeoService
from fuel_directory.services.records import StationRecord

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def minutes(n: int) -> datetime:
    return T0 + timedelta(minutes=n)


def make_station(
    station_id: str,
    name: str,
    latitude: float,
    longitude: float,
    created_at: Optional[datetime] = None,
    region: str = "Riyadh",
) -> StationRecord:
    return StationRecord(
        id=station_id,
        name=name,
        latitude=latitude,
        longitude=longitude,
        region=region,
        created_at=created_at,
    )


class FakeStationRepository:
    """In-memory station store with switchable failures."""

    def __init__(self, stations: Optional[List[StationRecord]] = None):
        self.stations: Dict[str, StationRecord] = {s.id: s for s in stations or []}
        self.fail_ordered_query = False
        self.fail_fetch_all = False
        self.fail_name_lookup = False
        self.fail_delete_ids: Set[str] = set()
        self.delete_calls: List[str] = []
        self.fetch_all_calls = 0

    async def find_by_exact_name(self, name: str) -> Optional[StationRecord]:
        if self.fail_name_lookup:
            raise QueryFailed("name lookup unavailable")
        return next((s for s in self.stations.values() if s.name == name), None)

    async def find_ordered_by_distance(self, latitude, longitude, limit) -> List[StationRecord]:
        if self.fail_ordered_query:
            raise QueryFailed("geospatial index unavailable")
        ranked = sorted(
            self.stations.values(),
            key=lambda s: GeoService.haversine_distance(latitude, longitude, s.latitude, s.longitude),
        )
        return ranked[:limit]

    async def fetch_all(self) -> List[StationRecord]:
        self.fetch_all_calls += 1
        if self.fail_fetch_all:
            raise QueryFailed("station table unavailable")
        return list(self.stations.values())

    async def delete_by_id(self, station_id: str) -> None:
        self.delete_calls.append(station_id)
        if station_id in self.fail_delete_ids:
            raise DeleteFailed(station_id, "simulated delete failure")
        if station_id not in self.stations:
            raise DeleteFailed(station_id, f"Station {station_id} does not exist")
        del self.stations[station_id]
