"""API routes for duplicate station detection and cleanup."""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db_session
from ..services.duplicate_service import DuplicateChecker, DuplicateResolver, index_duplicates
from ..services.errors import IndexingFailed, QueryFailed
from ..services.records import StationRecord
from ..services.station_repository import SqlStationRepository
from ..services.station_service import StationService

router = APIRouter()
logger = logging.getLogger("duplicates")


class DuplicateCheckRequest(BaseModel):
    """Candidate station to check before insert."""
    name: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class StationPayload(BaseModel):
    """Station as loaded by a client page."""
    id: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    region: str = ""
    sub_region: str = ""
    fuel_types: Optional[str] = None
    additional_info: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IndexRequest(BaseModel):
    """A page of stations to flag."""
    stations: List[StationPayload]


@router.post("/check")
async def check_duplicate(
    candidate: DuplicateCheckRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Check whether a proposed station duplicates a stored one."""
    checker = DuplicateChecker(SqlStationRepository(db))
    try:
        result = await checker.check(candidate.name, candidate.latitude, candidate.longitude)
    except QueryFailed as exc:
        # Fail closed: an unknown duplicate status must block the insert.
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return result.to_dict()


@router.post("/index")
async def index_page(request: IndexRequest):
    """Flag every station of a page that duplicates another station on the same page."""
    if len(request.stations) > settings.duplicate_page_max_size:
        raise HTTPException(
            status_code=413,
            detail=f"At most {settings.duplicate_page_max_size} stations can be indexed at once",
        )
    try:
        records = [StationRecord.from_mapping(item.model_dump()) for item in request.stations]
        flags = index_duplicates(records)
    except (IndexingFailed, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"flags": flags, "duplicate_count": sum(1 for flagged in flags.values() if flagged)}


@router.post("/resolve")
async def resolve_duplicates(
    region: Optional[str] = Query(None, description="Only resolve stations of this region"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Delete duplicate stations, keeping the earliest-created one of each group.

    Individual delete failures are reported in `errors` and do not stop the run.
    """
    repository = SqlStationRepository(db)
    try:
        records = await StationService(repository).list_stations(region)
    except QueryFailed as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    if len(records) > settings.duplicate_page_max_size:
        raise HTTPException(
            status_code=413,
            detail=(
                f"At most {settings.duplicate_page_max_size} stations can be resolved at once; "
                "narrow the run with a region"
            ),
        )

    try:
        result = await DuplicateResolver(repository).resolve(records)
    except IndexingFailed as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as e:
        logger.exception("Duplicate resolution failed")
        raise HTTPException(status_code=500, detail=str(e))

    return result.to_dict()
