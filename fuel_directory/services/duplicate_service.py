"""Duplicate station detection and resolution.

Two stations are duplicates when their names match case-insensitively or
when they are strictly closer than 100 meters. Either condition suffices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import DeleteFailed, IndexingFailed
from .geo_service import DUPLICATE_DISTANCE_METERS, GeoService
from .nearest_service import NearestStationFinder
from .records import StationRecord
from .station_repository import StationRepository

logger = logging.getLogger("duplicates")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class DuplicateCheckResult:
    """Outcome of checking one candidate station against the store."""

    is_duplicate: bool
    duplicate_station: Optional[StationRecord] = None
    duplicate_type: Optional[str] = None  # "name" or "location"

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_duplicate": self.is_duplicate,
            "duplicate_station": self.duplicate_station.to_dict() if self.duplicate_station else None,
            "duplicate_type": self.duplicate_type,
        }


@dataclass
class DuplicateGroup:
    key: Tuple[str, str]
    kind: str
    members: List[StationRecord] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Aggregate outcome of a resolution run."""

    deleted_count: int = 0
    errors: List[str] = field(default_factory=list)
    remaining: List[StationRecord] = field(default_factory=list)
    deleted_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "deleted_count": self.deleted_count,
            "errors": list(self.errors),
            "remaining": [station.to_dict() for station in self.remaining],
            "deleted_ids": list(self.deleted_ids),
        }


def _name_key(station: StationRecord) -> str:
    return station.name.lower()


def are_duplicates(a: StationRecord, b: StationRecord) -> bool:
    """Symmetric duplicate rule for two distinct stations."""
    if _name_key(a) == _name_key(b):
        return True
    return GeoService.within_duplicate_range(a, b)


def _validate(records: Sequence[StationRecord]) -> None:
    seen = set()
    for position, record in enumerate(records):
        if record.id is None or record.id == "":
            raise IndexingFailed(f"Station at position {position} has no id")
        if record.name is None:
            raise IndexingFailed(f"Station {record.id} has no name")
        if record.latitude is None or record.longitude is None:
            raise IndexingFailed(f"Station {record.id} is missing coordinates")
        if record.id in seen:
            raise IndexingFailed(f"Station {record.id} appears more than once")
        seen.add(record.id)


def index_duplicates(records: Sequence[StationRecord]) -> Dict[str, bool]:
    """
    Flag every station that forms a duplicate pair with another in `records`.

    Compares every unordered pair, so callers should pass one page of records
    rather than the whole dataset.

    Returns:
        Mapping of station id to True when the station has at least one duplicate.

    Raises:
        IndexingFailed: If a record lacks an id or coordinates, or an id repeats.
    """
    _validate(records)

    flags = {record.id: False for record in records}
    for i, station in enumerate(records):
        for other in records[i + 1:]:
            if are_duplicates(station, other):
                flags[station.id] = True
                flags[other.id] = True
    return flags


class DuplicateIndexer:
    """Object wrapper around `index_duplicates` for injection into callers."""

    def index(self, records: Sequence[StationRecord]) -> Dict[str, bool]:
        return index_duplicates(records)


class DuplicateChecker:
    """Checks a proposed station against every persisted station before insert."""

    def __init__(self, repository: StationRepository, finder: Optional[NearestStationFinder] = None):
        self._repository = repository
        self._finder = finder or NearestStationFinder(repository)

    async def check(self, name: str, latitude: float, longitude: float) -> DuplicateCheckResult:
        """
        Look for an existing station with the same stored name, then for the
        closest station within 100 meters.

        Raises:
            QueryFailed: If either lookup fails. A failed check is never
                reported as "no duplicate".
        """
        same_name = await self._repository.find_by_exact_name(name)
        if same_name is not None:
            return DuplicateCheckResult(
                is_duplicate=True,
                duplicate_station=same_name,
                duplicate_type="name",
            )

        nearest = await self._finder.find_nearest(latitude, longitude, limit=1)
        if nearest and nearest[0].distance_meters < DUPLICATE_DISTANCE_METERS:
            return DuplicateCheckResult(
                is_duplicate=True,
                duplicate_station=nearest[0],
                duplicate_type="location",
            )

        return DuplicateCheckResult(is_duplicate=False)


def _location_key(station: StationRecord) -> str:
    return f"{station.latitude:.4f}_{station.longitude:.4f}"


def build_duplicate_groups(
    records: Sequence[StationRecord], flags: Dict[str, bool]
) -> List[DuplicateGroup]:
    """
    Group flagged stations for resolution.

    Names shared by two or more flagged stations form name groups. Each
    remaining flagged station, in input order, seeds a location group and
    pulls in every flagged, ungrouped station within 100 meters of the seed.
    Members are therefore all close to the seed, not chained through each
    other.
    """
    flagged = [record for record in records if flags.get(record.id)]

    by_name: Dict[str, List[StationRecord]] = {}
    for station in flagged:
        by_name.setdefault(_name_key(station), []).append(station)

    groups: List[DuplicateGroup] = []
    grouped = set()
    for name, members in by_name.items():
        if len(members) > 1:
            groups.append(DuplicateGroup(key=("name", name), kind="name", members=members))
            grouped.update(member.id for member in members)

    for i, seed in enumerate(flagged):
        if seed.id in grouped:
            continue
        group = DuplicateGroup(key=("location", _location_key(seed)), kind="location", members=[seed])
        grouped.add(seed.id)
        for other in flagged[i + 1:]:
            if other.id in grouped:
                continue
            if GeoService.within_duplicate_range(seed, other):
                group.members.append(other)
                grouped.add(other.id)
        groups.append(group)

    return groups


def _creation_order(station: StationRecord) -> datetime:
    created_at = station.created_at
    if created_at is None:
        return _OLDEST
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


class DuplicateResolver:
    """Deletes all but the earliest-created station of every duplicate group."""

    def __init__(self, repository: StationRepository, indexer: Optional[DuplicateIndexer] = None):
        self._repository = repository
        self._indexer = indexer or DuplicateIndexer()

    async def resolve(self, records: Sequence[StationRecord]) -> ResolutionResult:
        """
        Remove duplicates from `records`, one delete at a time.

        A failed delete is reported in `errors` and the station is left out of
        `remaining`; the run carries on with the next station. Passes repeat
        over the survivors until no group has more than one member.

        Raises:
            IndexingFailed: If `records` is malformed.
        """
        result = ResolutionResult()
        working = list(records)
        passes = 0

        while True:
            flags = self._indexer.index(working)
            groups = [g for g in build_duplicate_groups(working, flags) if len(g.members) > 1]
            if not groups:
                break
            passes += 1

            dropped = set()
            for group in groups:
                # sorted() is stable: equal timestamps keep input order
                ordered = sorted(group.members, key=_creation_order)
                survivor = ordered[0]
                for station in ordered[1:]:
                    dropped.add(station.id)
                    await self._delete(station, survivor, group, result)

            working = [station for station in working if station.id not in dropped]

        result.remaining = working
        logger.info(
            "Duplicate resolution finished: %s deleted, %s failed, %s remaining (%s passes)",
            result.deleted_count,
            len(result.errors),
            len(result.remaining),
            passes,
        )
        return result

    async def _delete(
        self,
        station: StationRecord,
        survivor: StationRecord,
        group: DuplicateGroup,
        result: ResolutionResult,
    ) -> None:
        try:
            await self._repository.delete_by_id(station.id)
        except DeleteFailed as exc:
            logger.warning("Failed to delete duplicate station %s: %s", station.id, exc)
            result.errors.append(
                f"Failed to delete station {station.name} ({station.id}): {exc}"
            )
            return
        result.deleted_count += 1
        result.deleted_ids.append(station.id)
        logger.info(
            "Deleted station %s, %s duplicate of %s",
            station.id,
            group.kind,
            survivor.id,
        )
