"""Station services: geolocation, duplicate handling and persistence."""

from .records import StationRecord
from .errors import (
    DeleteFailed,
    DuplicateStationError,
    IndexingFailed,
    QueryFailed,
    StationNotFoundError,
)
from .geo_service import GeoService, DUPLICATE_DISTANCE_METERS
from .station_repository import StationRepository, SqlStationRepository
from .nearest_service import NearestStationFinder, FastPathResult, FallbackResult
from .duplicate_service import (
    DuplicateChecker,
    DuplicateCheckResult,
    DuplicateIndexer,
    DuplicateResolver,
    ResolutionResult,
    index_duplicates,
)
from .station_service import StationService

__all__ = [
    "StationRecord",
    "DeleteFailed",
    "DuplicateStationError",
    "IndexingFailed",
    "QueryFailed",
    "StationNotFoundError",
    "GeoService",
    "DUPLICATE_DISTANCE_METERS",
    "StationRepository",
    "SqlStationRepository",
    "NearestStationFinder",
    "FastPathResult",
    "FallbackResult",
    "DuplicateChecker",
    "DuplicateCheckResult",
    "DuplicateIndexer",
    "DuplicateResolver",
    "ResolutionResult",
    "index_duplicates",
    "StationService",
]
