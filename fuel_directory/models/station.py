"""Station model for fuel station records."""

import uuid
from typing import Optional

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


def _new_station_id() -> str:
    return str(uuid.uuid4())


class Station(Base, TimestampMixin):
    """Represents a fuel station in the directory."""

    __tablename__ = "stations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_station_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(100), nullable=False, default="", index=True)
    sub_region: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    fuel_types: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    additional_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Station(id={self.id}, name={self.name})>"
