"""Typed station records handed to the duplicate and geolocation services.

Rows coming back from the store are loosely typed (numeric strings, ISO
timestamps, naive datetimes). They are coerced here, once, so the algorithms
downstream can rely on clean floats and timezone-aware datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from ..models.station import Station


def _coerce_float(value: Any, field_name: str) -> float:
    if value is None or value == "":
        raise ValueError(f"Station field '{field_name}' is required")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Station field '{field_name}' is not numeric: {value!r}") from exc


def _coerce_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class StationRecord:
    """Immutable snapshot of a station row."""

    id: str
    name: str
    latitude: float
    longitude: float
    region: str = ""
    sub_region: str = ""
    fuel_types: Optional[str] = None
    additional_info: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    distance_meters: Optional[float] = field(default=None, compare=False)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "StationRecord":
        """Build a record from a loosely typed mapping (JSON body, raw row)."""
        station_id = row.get("id")
        name = row.get("name")
        if station_id is None or str(station_id) == "":
            raise ValueError("Station field 'id' is required")
        if not name:
            raise ValueError("Station field 'name' is required")

        distance = row.get("distance_meters")
        return cls(
            id=str(station_id),
            name=str(name),
            latitude=_coerce_float(row.get("latitude"), "latitude"),
            longitude=_coerce_float(row.get("longitude"), "longitude"),
            region=str(row.get("region") or ""),
            sub_region=str(row.get("sub_region") or ""),
            fuel_types=_optional_text(row.get("fuel_types")),
            additional_info=_optional_text(row.get("additional_info")),
            created_at=_coerce_timestamp(row.get("created_at")),
            updated_at=_coerce_timestamp(row.get("updated_at")),
            distance_meters=float(distance) if distance is not None else None,
        )

    @classmethod
    def from_model(cls, station: "Station") -> "StationRecord":
        """Build a record from a `Station` ORM instance."""
        return cls(
            id=str(station.id),
            name=station.name,
            latitude=float(station.latitude),
            longitude=float(station.longitude),
            region=station.region or "",
            sub_region=station.sub_region or "",
            fuel_types=station.fuel_types,
            additional_info=station.additional_info,
            created_at=_coerce_timestamp(station.created_at),
            updated_at=_coerce_timestamp(station.updated_at),
        )

    def with_distance(self, distance_meters: float) -> "StationRecord":
        return replace(self, distance_meters=distance_meters)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record for JSON responses."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "region": self.region,
            "sub_region": self.sub_region,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "fuel_types": self.fuel_types,
            "additional_info": self.additional_info,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.distance_meters is not None:
            payload["distance_meters"] = self.distance_meters
        return payload
