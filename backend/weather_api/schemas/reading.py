"""
Reading request/response schemas.
"""
from pydantic import Field

from weather_api.schemas.common import ApiModel, MessageResponse, UtcDatetime


class ReadingFields(ApiModel):
    device_name: str | None = None
    precipitation: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    atmospheric_pressure: float | None = None
    humidity: float | None = None
    max_wind_speed: float | None = None
    solar_radiation: float | None = None
    temperature: float | None = None
    vapor_pressure: float | None = None
    wind_direction: float | None = None


class ReadingCreate(ReadingFields):
    """New reading; any _id or time sent by the client is ignored (server assigns both)."""


class ReadingUpdate(ReadingFields):
    id: str = Field(alias="_id")
    time: UtcDatetime | None = None  # omitted: keep the stored time


class PrecipitationUpdate(ApiModel):
    id: str = Field(alias="_id")
    precipitation: float


class ReadingResponse(ReadingFields):
    id: str = Field(alias="_id")
    time: UtcDatetime


class MaxPrecipitationResponse(ApiModel):
    device_name: str | None
    time: UtcDatetime
    precipitation: float | None


class DeviceSnapshotResponse(ApiModel):
    temperature: float | None
    atmospheric_pressure: float | None
    solar_radiation: float | None
    precipitation: float | None


class MaxTemperatureResponse(ApiModel):
    device_name: str | None
    temperature: float | None
    time: UtcDatetime


class ReadingEnvelope(MessageResponse):
    reading: ReadingResponse


class ReadingListEnvelope(MessageResponse):
    readings: list[ReadingResponse]


class MaxPrecipitationEnvelope(MessageResponse):
    reading: MaxPrecipitationResponse


class DeviceSnapshotEnvelope(MessageResponse):
    reading: DeviceSnapshotResponse


class MaxTemperatureEnvelope(MessageResponse):
    readings: list[MaxTemperatureResponse]


class PrecipitationUpdateEnvelope(MessageResponse):
    modified_count: int
