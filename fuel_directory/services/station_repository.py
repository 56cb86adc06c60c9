"""Station persistence: the repository port and its SQLAlchemy implementation."""

from __future__ import annotations

import logging
from math import cos, radians
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.station import Station
from .errors import DeleteFailed, QueryFailed
from .records import StationRecord

logger = logging.getLogger("stations")


class StationRepository(Protocol):
    """Port for reading and deleting persisted stations."""

    async def find_by_exact_name(self, name: str) -> Optional[StationRecord]:
        """Return one station whose stored name equals `name`, if any."""
        ...

    async def find_ordered_by_distance(
        self, latitude: float, longitude: float, limit: int
    ) -> List[StationRecord]:
        """Return up to `limit` stations ordered by the store's own distance ordering."""
        ...

    async def fetch_all(self) -> List[StationRecord]:
        """Return every station."""
        ...

    async def delete_by_id(self, station_id: str) -> None:
        """Delete one station, raising `DeleteFailed` on any failure."""
        ...


class SqlStationRepository:
    """`StationRepository` backed by an async SQLAlchemy session.

    Every delete is committed on its own so that one failure cannot roll back
    deletions that already succeeded.
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_exact_name(self, name: str) -> Optional[StationRecord]:
        try:
            result = await self._db.execute(
                select(Station).where(Station.name == name).limit(1)
            )
            station = result.scalars().first()
        except SQLAlchemyError as exc:
            raise QueryFailed(f"Station lookup by name failed: {exc}") from exc
        return StationRecord.from_model(station) if station else None

    async def find_ordered_by_distance(
        self, latitude: float, longitude: float, limit: int
    ) -> List[StationRecord]:
        # Equirectangular squared distance, used for ordering only; exact
        # distances are computed by the caller. The longitude gap wraps at
        # the antimeridian.
        scale = cos(radians(latitude))
        dlat = Station.latitude - latitude
        raw_dlon = func.abs(Station.longitude - longitude)
        dlon = case((raw_dlon > 180, 360 - raw_dlon), else_=raw_dlon) * scale
        try:
            result = await self._db.execute(
                select(Station)
                .order_by(dlat * dlat + dlon * dlon, Station.created_at)
                .limit(limit)
            )
            stations = result.scalars().all()
        except SQLAlchemyError as exc:
            raise QueryFailed(f"Ordered distance query failed: {exc}") from exc
        return [StationRecord.from_model(station) for station in stations]

    async def fetch_all(self) -> List[StationRecord]:
        try:
            result = await self._db.execute(select(Station).order_by(Station.created_at))
            stations = result.scalars().all()
        except SQLAlchemyError as exc:
            raise QueryFailed(f"Fetching stations failed: {exc}") from exc
        return [StationRecord.from_model(station) for station in stations]

    async def delete_by_id(self, station_id: str) -> None:
        try:
            result = await self._db.execute(delete(Station).where(Station.id == station_id))
            if result.rowcount == 0:
                await self._rollback(station_id)
                raise DeleteFailed(station_id, f"Station {station_id} does not exist")
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._rollback(station_id)
            raise DeleteFailed(station_id, f"Deleting station {station_id} failed: {exc}") from exc

    async def _rollback(self, station_id: str) -> None:
        # The caller raises DeleteFailed either way.
        try:
            await self._db.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback after deleting station %s failed: %s", station_id, exc)

    async def get_by_id(self, station_id: str) -> Optional[StationRecord]:
        try:
            station = await self._db.get(Station, station_id)
        except SQLAlchemyError as exc:
            raise QueryFailed(f"Station lookup by id failed: {exc}") from exc
        return StationRecord.from_model(station) if station else None

    async def list_by_region(self, region: str) -> List[StationRecord]:
        try:
            result = await self._db.execute(
                select(Station).where(Station.region == region).order_by(Station.created_at)
            )
            stations = result.scalars().all()
        except SQLAlchemyError as exc:
            raise QueryFailed(f"Fetching stations for region {region} failed: {exc}") from exc
        return [StationRecord.from_model(station) for station in stations]

    async def add(self, fields: Dict[str, Any]) -> StationRecord:
        """Insert a station and return it with its assigned id and timestamps."""
        station = Station(**fields)
        try:
            self._db.add(station)
            await self._db.flush()
            await self._db.refresh(station)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise QueryFailed(f"Inserting station {fields.get('name')!r} failed: {exc}") from exc
        logger.info("Added station %s (%s)", station.name, station.id)
        return StationRecord.from_model(station)
