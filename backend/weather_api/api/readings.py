"""
Readings API: get by id / page / date range, create (single and bulk), full update (single and bulk),
delete (single and bulk), per-device aggregates, precipitation-only update.
Every route is behind a role gate; ids are validated after the gate and before the store is touched.
Empty results: paginated, date-range and max-temperature reads answer 404, as do bulk writes that change nothing.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from weather_api.api.deps import GatedRoute, get_reading_store
from weather_api.api.permissions import (
    can_create_readings,
    can_modify_readings,
    can_read_readings,
    can_update_precipitation,
)
from weather_api.api.validation import require_object_id, require_object_ids, require_page
from weather_api.config import settings
from weather_api.errors import NotFound, RecordNotFound
from weather_api.models.reading import Reading
from weather_api.models.user import User
from weather_api.schemas.common import CountResponse, IdsRequest, MessageResponse
from weather_api.schemas.reading import (
    DeviceSnapshotEnvelope,
    DeviceSnapshotResponse,
    MaxPrecipitationEnvelope,
    MaxPrecipitationResponse,
    MaxTemperatureEnvelope,
    MaxTemperatureResponse,
    PrecipitationUpdate,
    PrecipitationUpdateEnvelope,
    ReadingCreate,
    ReadingEnvelope,
    ReadingListEnvelope,
    ReadingResponse,
    ReadingUpdate,
)
from weather_api.stores.readings import READING_COLUMNS, ReadingStore

router = APIRouter(prefix="/readings", tags=["readings"], route_class=GatedRoute)
logger = logging.getLogger(__name__)


def reading_to_response(r: Reading) -> ReadingResponse:
    return ReadingResponse(
        id=str(r.id),
        device_name=r.device_name,
        time=r.time,
        precipitation=r.precipitation,
        latitude=r.latitude,
        longitude=r.longitude,
        atmospheric_pressure=r.atmospheric_pressure,
        humidity=r.humidity,
        max_wind_speed=r.max_wind_speed,
        solar_radiation=r.solar_radiation,
        temperature=r.temperature,
        vapor_pressure=r.vapor_pressure,
        wind_direction=r.wind_direction,
    )


def _new_reading(data: ReadingCreate) -> Reading:
    # id and time are assigned by the store
    return Reading(**data.model_dump(include=set(READING_COLUMNS)))


def _replacement_values(data: ReadingUpdate) -> dict:
    return data.model_dump(include=set(READING_COLUMNS))


@router.get("/page/{page}", response_model=ReadingListEnvelope)
def get_readings_by_page(
    page: int,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """One page of readings (page size from READINGS_PAGE_SIZE); 404 for an empty page."""
    require_page(page)
    items = readings.get_by_page(page, settings.readings_page_size)
    if not items:
        raise NotFound("No weather data readings found for the page number provided")
    return ReadingListEnvelope(
        status=200,
        message=f"Get paginated weather data readings on page {page}",
        readings=[reading_to_response(r) for r in items],
    )


@router.get("/date/{start_date}/{end_date}", response_model=ReadingListEnvelope)
def get_readings_by_date_range(
    start_date: datetime,
    end_date: datetime,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Readings with start_date <= time <= end_date; 404 when there are none."""
    items = readings.get_by_date_range(start_date, end_date)
    if not items:
        raise NotFound("No weather data readings found for the provided date range")
    return ReadingListEnvelope(
        status=200,
        message="Get weather data readings by date range successfully",
        readings=[reading_to_response(r) for r in items],
    )


@router.get("/maxprecipitation/{device_name}", response_model=MaxPrecipitationEnvelope)
def get_max_precipitation_last_five_months(
    device_name: str,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    try:
        row = readings.get_max_precip_last_five_months(device_name)
    except RecordNotFound:
        raise NotFound(
            "Maximum precipitation data was not found within the last 5 months with the given device name."
        )
    return MaxPrecipitationEnvelope(
        status=200,
        message="Get maximum precipitation in last 5 months for given device name",
        reading=MaxPrecipitationResponse(device_name=row.device_name, time=row.time, precipitation=row.precipitation),
    )


@router.get("/devicedate/{device_name}/{when}", response_model=DeviceSnapshotEnvelope)
def get_device_by_date(
    device_name: str,
    when: datetime,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Temperature, atmospheric pressure, solar radiation and precipitation of the device's first reading at or after `when`."""
    try:
        row = readings.get_device_by_date(device_name, when)
    except RecordNotFound:
        raise NotFound("Data not found within given device and date time")
    return DeviceSnapshotEnvelope(
        status=200,
        message="Get temperature, atmospheric, radiation and precipitation for the station by given date time",
        reading=DeviceSnapshotResponse(
            temperature=row.temperature,
            atmospheric_pressure=row.atmospheric_pressure,
            solar_radiation=row.solar_radiation,
            precipitation=row.precipitation,
        ),
    )


@router.get("/maxtemperature/{start_date}/{end_date}", response_model=MaxTemperatureEnvelope)
def get_max_temperature_by_date_range(
    start_date: datetime,
    end_date: datetime,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Maximum temperature per device within the date range."""
    rows = readings.get_max_temp_by_date_range(start_date, end_date)
    if not rows:
        raise NotFound("Maximum temperature data not found within the specified date range")
    return MaxTemperatureEnvelope(
        status=200,
        message="Get maximum temperature for all stations by date range",
        readings=[
            MaxTemperatureResponse(device_name=row.device_name, temperature=row.temperature, time=row.time)
            for row in rows
        ],
    )


@router.get("/{reading_id}", response_model=ReadingEnvelope)
def get_reading_by_id(
    reading_id: str,
    current_user: User = Depends(can_read_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    require_object_id(reading_id)
    try:
        reading = readings.get_by_id(reading_id)
    except RecordNotFound:
        raise NotFound(f"Weather data reading not found with ID: {reading_id}")
    return ReadingEnvelope(
        status=200,
        message="Get weather data reading by ID successfully",
        reading=reading_to_response(reading),
    )


@router.post("", response_model=ReadingEnvelope)
def create_reading(
    data: ReadingCreate,
    current_user: User = Depends(can_create_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Record one reading; the server stamps its time."""
    reading = readings.create(_new_reading(data))
    logger.info("Reading %s created by %s", reading.id, current_user.id)
    return ReadingEnvelope(
        status=200,
        message="Created weather data reading successfully",
        reading=reading_to_response(reading),
    )


@router.post("/many", response_model=ReadingListEnvelope)
def create_readings(
    data: list[ReadingCreate],
    current_user: User = Depends(can_create_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    created = readings.create_many([_new_reading(d) for d in data])
    return ReadingListEnvelope(
        status=200,
        message=f"Created {len(created)} weather data readings successfully",
        readings=[reading_to_response(r) for r in created],
    )


@router.patch("", response_model=ReadingEnvelope)
def update_reading(
    data: ReadingUpdate,
    current_user: User = Depends(can_modify_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Replace a reading by _id. Measurements left out are cleared; time is kept unless supplied."""
    reading_id = require_object_id(data.id)
    reading = readings.update(reading_id, _replacement_values(data))
    if reading is None:
        raise NotFound(f"Weather data reading not found with ID: {reading_id}")
    return ReadingEnvelope(
        status=200,
        message="Updated weather data reading successfully",
        reading=reading_to_response(reading),
    )


@router.patch("/update/many", response_model=CountResponse)
def update_readings(
    data: list[ReadingUpdate],
    current_user: User = Depends(can_modify_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Replace several readings. Unknown ids are skipped; 404 only when nothing changed."""
    ids = require_object_ids([d.id for d in data])
    result = readings.update_many([(i, _replacement_values(d)) for i, d in zip(ids, data)])
    if result.modified == 0:
        raise NotFound("No weather data readings were updated")
    return CountResponse(
        status=200,
        message=f"{result.modified} weather data readings updated successfully",
        count=result.modified,
    )


@router.patch("/update/precipitation", response_model=PrecipitationUpdateEnvelope)
def update_precipitation(
    data: PrecipitationUpdate,
    current_user: User = Depends(can_update_precipitation),
    readings: ReadingStore = Depends(get_reading_store),
):
    reading_id = require_object_id(data.id)
    modified = readings.update_precip_by_id(reading_id, data.precipitation)
    if modified == 0:
        raise NotFound("No reading was updated")
    return PrecipitationUpdateEnvelope(
        status=200,
        message="Updated readings precipitation by ID",
        modified_count=modified,
    )


@router.delete("/delete/many", response_model=CountResponse)
def delete_readings(
    data: IdsRequest,
    current_user: User = Depends(can_modify_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    """Delete every listed reading that exists; 404 only when none did."""
    ids = require_object_ids(data.ids)
    deleted = readings.delete_many_by_ids(ids)
    if deleted == 0:
        raise NotFound("Weather data readings not found to delete")
    logger.info("%s deleted %s readings", current_user.id, deleted)
    return CountResponse(
        status=200,
        message=f"{deleted} weather data readings deleted successfully",
        count=deleted,
    )


@router.delete("/{reading_id}", response_model=MessageResponse)
def delete_reading(
    reading_id: str,
    current_user: User = Depends(can_modify_readings),
    readings: ReadingStore = Depends(get_reading_store),
):
    require_object_id(reading_id)
    if readings.delete_by_id(reading_id) == 0:
        raise NotFound("Weather data reading not found")
    return MessageResponse(status=200, message="Weather data reading deleted successfully")
