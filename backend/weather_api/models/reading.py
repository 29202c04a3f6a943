"""
Reading: one weather-station observation. All measurements are optional.
time is stamped by the server when the reading is created.
"""
from datetime import datetime
from sqlalchemy import String, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from weather_api.database import Base
from weather_api.models.types import ObjectIdType, new_object_id

# Measurement columns, in the order the API documents them
MEASUREMENT_FIELDS = (
    "precipitation",
    "latitude",
    "longitude",
    "atmospheric_pressure",
    "humidity",
    "max_wind_speed",
    "solar_radiation",
    "temperature",
    "vapor_pressure",
    "wind_direction",
)


class Reading(Base):
    __tablename__ = "readings"

    id: Mapped[str] = mapped_column(ObjectIdType(), primary_key=True, default=new_object_id)
    device_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    precipitation: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    atmospheric_pressure: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_wind_speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    solar_radiation: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    vapor_pressure: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_direction: Mapped[float | None] = mapped_column(Float, nullable=True)
