"""API routes for geolocation-based features."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ..config import settings
from ..database import get_db_session
from ..services.errors import QueryFailed
from ..services.geo_service import GeoService
from ..services.nearest_service import NearestStationFinder
from ..services.station_repository import SqlStationRepository

router = APIRouter()
geo_service = GeoService()


@router.get("/nearest")
async def find_nearest_stations(
    lat: float = Query(..., ge=-90, le=90, description="User latitude"),
    lon: float = Query(..., ge=-180, le=180, description="User longitude"),
    limit: int = Query(
        settings.nearest_default_limit,
        ge=1,
        le=settings.nearest_max_limit,
        description="Maximum number of results",
    ),
    max_distance: Optional[float] = Query(None, gt=0, description="Maximum distance in meters"),
    language: str = Query("en", pattern="^(en|ar)$", description="Language of distance labels"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Find the fuel stations nearest to a location.

    Returns stations sorted by distance, with the strategy that produced them.
    """
    finder = NearestStationFinder(SqlStationRepository(db), geo_service)
    try:
        outcome = await finder.search(lat, lon, limit, max_distance)
    except QueryFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    result = [
        {
            "station": station.to_dict(),
            "distance_m": round(station.distance_meters, 0),
            "distance_label": geo_service.format_distance(station.distance_meters / 1000, language),
        }
        for station in outcome.stations
    ]

    return {"results": result, "count": len(result), "strategy": outcome.strategy}
