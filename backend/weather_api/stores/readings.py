"""
Reading store: readings table CRUD, pagination, date-range queries and the per-device
aggregates (max precipitation in the last five months, first reading after a time,
max temperature per device in a window).
"""
import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from weather_api.errors import RecordNotFound
from weather_api.models.reading import MEASUREMENT_FIELDS, Reading
from weather_api.models.types import new_object_id
from weather_api.services.timeutils import as_utc, months_before, utcnow
from weather_api.stores.base import WriteResult, replace_fields, store_operation

logger = logging.getLogger(__name__)

READING_COLUMNS = ("device_name", "time") + MEASUREMENT_FIELDS
# Readings keep their original timestamp unless an update supplies one
KEEP_WHEN_ABSENT = frozenset({"time"})
MAX_PRECIP_WINDOW_MONTHS = 5


class ReadingStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, reading_id: str) -> Reading:
        with store_operation(self.db, "get reading by id"):
            reading = self.db.get(Reading, reading_id.lower())
        if reading is None:
            raise RecordNotFound(f"reading {reading_id} not found")
        return reading

    def get_by_page(self, page: int, size: int) -> list[Reading]:
        """1-indexed page; a page past the end is an empty list. Callers reject page < 1."""
        offset = (page - 1) * size
        stmt = select(Reading).order_by(Reading.time, Reading.id).offset(offset).limit(size)
        with store_operation(self.db, "get readings by page"):
            return list(self.db.scalars(stmt))

    def get_by_date_range(self, start: datetime, end: datetime) -> list[Reading]:
        """Readings with start <= time <= end, oldest first."""
        stmt = (
            select(Reading)
            .where(Reading.time.between(as_utc(start), as_utc(end)))
            .order_by(Reading.time, Reading.id)
        )
        with store_operation(self.db, "get readings by date range"):
            return list(self.db.scalars(stmt))

    def create(self, reading: Reading) -> Reading:
        """Insert with a new id, stamped with the current time."""
        reading.id = new_object_id()
        reading.time = utcnow()
        with store_operation(self.db, "create reading", commit=True):
            self.db.add(reading)
        self.db.refresh(reading)
        return reading

    def create_many(self, readings: list[Reading]) -> list[Reading]:
        """Bulk insert; each reading gets its own id and its own time stamp."""
        for reading in readings:
            reading.id = new_object_id()
            reading.time = utcnow()
        with store_operation(self.db, "create readings", commit=True):
            self.db.add_all(readings)
        for reading in readings:
            self.db.refresh(reading)
        logger.info("Created %s readings", len(readings))
        return readings

    def update(self, reading_id: str, values: dict) -> Reading | None:
        """Full-record replace. Returns the updated reading, or None when no reading has this id."""
        with store_operation(self.db, "update reading", commit=True):
            reading = self.db.get(Reading, reading_id.lower())
            if reading is None:
                return None
            replace_fields(reading, _normalized(values), READING_COLUMNS, KEEP_WHEN_ABSENT)
        self.db.refresh(reading)
        return reading

    def update_many(self, items: list[tuple[str, dict]]) -> WriteResult:
        """Per-record replace; unknown ids are skipped and only lower the counts."""
        matched = modified = 0
        with store_operation(self.db, "update readings", commit=True):
            for reading_id, values in items:
                reading = self.db.get(Reading, reading_id.lower())
                if reading is None:
                    continue
                matched += 1
                if replace_fields(reading, _normalized(values), READING_COLUMNS, KEEP_WHEN_ABSENT):
                    modified += 1
        logger.info("update_many readings: %s matched, %s modified of %s", matched, modified, len(items))
        return WriteResult(matched=matched, modified=modified)

    def update_precip_by_id(self, reading_id: str, precipitation: float | None) -> int:
        """Set only the precipitation field. Returns the number of readings updated (0 or 1)."""
        with store_operation(self.db, "update reading precipitation", commit=True):
            result = self.db.execute(
                update(Reading).where(Reading.id == reading_id.lower()).values(precipitation=precipitation)
            )
        return result.rowcount or 0

    def delete_by_id(self, reading_id: str) -> int:
        with store_operation(self.db, "delete reading", commit=True):
            result = self.db.execute(delete(Reading).where(Reading.id == reading_id.lower()))
        return result.rowcount or 0

    def delete_many_by_ids(self, reading_ids: list[str]) -> int:
        if not reading_ids:
            return 0
        with store_operation(self.db, "delete readings", commit=True):
            result = self.db.execute(delete(Reading).where(Reading.id.in_([i.lower() for i in reading_ids])))
        return result.rowcount or 0

    def get_max_precip_last_five_months(self, device_name: str, now: datetime | None = None) -> Row:
        """
        Highest-precipitation reading for the device with time in the last five calendar months.
        Returns (device_name, time, precipitation). Ties go to the oldest reading; readings without
        a precipitation value only win when nothing else is in the window.
        """
        since = months_before(as_utc(now) if now else utcnow(), MAX_PRECIP_WINDOW_MONTHS)
        stmt = (
            select(Reading.device_name, Reading.time, Reading.precipitation)
            .where(Reading.device_name == device_name, Reading.time >= since)
            .order_by(Reading.precipitation.desc().nulls_last(), Reading.time, Reading.id)
            .limit(1)
        )
        with store_operation(self.db, "get max precipitation"):
            row = self.db.execute(stmt).first()
        if row is None:
            raise RecordNotFound(f"no readings for {device_name} in the last {MAX_PRECIP_WINDOW_MONTHS} months")
        return row

    def get_device_by_date(self, device_name: str, when: datetime) -> Row:
        """First reading for the device at or after `when`: (temperature, atmospheric_pressure, solar_radiation, precipitation)."""
        stmt = (
            select(
                Reading.temperature,
                Reading.atmospheric_pressure,
                Reading.solar_radiation,
                Reading.precipitation,
            )
            .where(Reading.device_name == device_name, Reading.time >= as_utc(when))
            .order_by(Reading.time, Reading.id)
            .limit(1)
        )
        with store_operation(self.db, "get device reading by date"):
            row = self.db.execute(stmt).first()
        if row is None:
            raise RecordNotFound(f"no readings for {device_name} from {when.isoformat()}")
        return row

    def get_max_temp_by_date_range(self, start: datetime, end: datetime) -> list[Row]:
        """
        Per device, the maximum temperature within start <= time <= end and the time it was read.
        Returns (device_name, temperature, time) rows ordered by device name; empty when nothing matches.
        """
        ranked = (
            select(
                Reading.device_name,
                Reading.temperature,
                Reading.time,
                func.row_number()
                .over(
                    partition_by=Reading.device_name,
                    order_by=(Reading.temperature.desc().nulls_last(), Reading.time, Reading.id),
                )
                .label("rn"),
            )
            .where(Reading.time.between(as_utc(start), as_utc(end)))
            .subquery()
        )
        stmt = (
            select(ranked.c.device_name, ranked.c.temperature, ranked.c.time)
            .where(ranked.c.rn == 1)
            .order_by(ranked.c.device_name)
        )
        with store_operation(self.db, "get max temperature by date range"):
            return list(self.db.execute(stmt).all())


def _normalized(values: dict) -> dict:
    if values.get("time") is not None:
        return {**values, "time": as_utc(values["time"])}
    return values
