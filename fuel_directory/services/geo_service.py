"""Geolocation service for distances between stations."""

from typing import Iterable, List, Optional
from math import radians, cos, sin, atan2, sqrt

from .records import StationRecord

# Mean radius of the earth in kilometers
EARTH_RADIUS_KM = 6371

# Two stations strictly closer than this are the same place
DUPLICATE_DISTANCE_METERS = 100.0

_UNIT_LABELS = {
    "en": {"meters": "meters", "km": "km"},
    "ar": {"meters": "متر", "km": "كم"},
}


class GeoService:
    """Service for geolocation calculations."""

    @staticmethod
    def haversine_distance(
        lat1: float,
        lon1: float,
        lat2: float,
        lon2: float
    ) -> float:
        """
        Calculate the great circle distance between two points
        on the earth (specified in decimal degrees).

        Returns distance in kilometers. Inputs are not range-checked.
        """
        # Convert decimal degrees to radians
        phi1, phi2 = radians(lat1), radians(lat2)
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)

        # Haversine formula
        a = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlon / 2) ** 2
        c = 2 * atan2(sqrt(a), sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    @staticmethod
    def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Haversine distance converted to meters."""
        return GeoService.haversine_distance(lat1, lon1, lat2, lon2) * 1000

    @staticmethod
    def within_duplicate_range(a: StationRecord, b: StationRecord) -> bool:
        """True when two stations are strictly closer than the duplicate threshold."""
        distance = GeoService.distance_meters(a.latitude, a.longitude, b.latitude, b.longitude)
        return distance < DUPLICATE_DISTANCE_METERS

    @staticmethod
    def rank_by_distance(
        user_lat: float,
        user_lon: float,
        stations: Iterable[StationRecord],
        max_results: int = 10,
        max_distance_meters: Optional[float] = None
    ) -> List[StationRecord]:
        """
        Rank stations by distance from a location by scanning every record.

        Args:
            user_lat: Reference latitude
            user_lon: Reference longitude
            stations: Station records to scan
            max_results: Maximum number of results to return
            max_distance_meters: Optional maximum distance filter in meters

        Returns:
            Records annotated with `distance_meters`, closest first
        """
        ranked = []

        for station in stations:
            if station.latitude is None or station.longitude is None:
                continue

            distance = GeoService.distance_meters(
                user_lat,
                user_lon,
                station.latitude,
                station.longitude
            )

            # Apply distance filter if specified
            if max_distance_meters is None or distance <= max_distance_meters:
                ranked.append(station.with_distance(distance))

        ranked.sort(key=lambda station: station.distance_meters)

        return ranked[:max_results]

    @staticmethod
    def format_distance(distance_km: float, language: str = "en") -> str:
        """Human readable distance: meters under 1 km, one decimal under 10 km."""
        labels = _UNIT_LABELS.get(language, _UNIT_LABELS["en"])
        if distance_km < 1:
            return f"{round(distance_km * 1000)} {labels['meters']}"
        if distance_km < 10:
            return f"{distance_km:.1f} {labels['km']}"
        return f"{round(distance_km)} {labels['km']}"
