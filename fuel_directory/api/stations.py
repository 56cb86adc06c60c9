"""API routes for station management."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db_session
from ..services.errors import (
    DeleteFailed,
    DuplicateStationError,
    QueryFailed,
    StationNotFoundError,
)
from ..services.station_repository import SqlStationRepository
from ..services.station_service import StationService

router = APIRouter()


class StationCreate(BaseModel):
    """Schema for creating a station."""
    name: str = Field(..., min_length=1, max_length=200)
    region: str = ""
    sub_region: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    fuel_types: Optional[str] = None
    additional_info: Optional[str] = None


def _station_service(db: AsyncSession) -> StationService:
    return StationService(SqlStationRepository(db))


@router.get("")
async def list_stations(
    region: Optional[str] = Query(None, description="Region filter, 'all' for every region"),
    db: AsyncSession = Depends(get_db_session),
):
    """List stations, optionally restricted to one region."""
    try:
        stations = await _station_service(db).list_stations(region)
    except QueryFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"stations": [s.to_dict() for s in stations], "count": len(stations)}


@router.get("/{station_id}")
async def get_station(station_id: str, db: AsyncSession = Depends(get_db_session)):
    """Get a single station."""
    try:
        station = await _station_service(db).get_station(station_id)
    except StationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except QueryFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return station.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_station(
    payload: StationCreate,
    skip_duplicate_check: bool = Query(False, description="Insert even if a duplicate exists"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Create a station.

    The station is rejected with 409 when another station has the same name
    or lies within 100 meters, unless the duplicate check is skipped.
    """
    try:
        station = await _station_service(db).add_station(
            payload.model_dump(), skip_duplicate_check=skip_duplicate_check
        )
    except DuplicateStationError as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), **exc.result.to_dict()},
        ) from exc
    except QueryFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return station.to_dict()


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(station_id: str, db: AsyncSession = Depends(get_db_session)):
    """Delete a station."""
    try:
        await _station_service(db).delete_station(station_id)
    except StationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (QueryFailed, DeleteFailed) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
