"""
UTC helpers. Every timestamp reaching the stores goes through as_utc so SQLite
(which drops tzinfo) and PostgreSQL compare the same instants.
"""
import calendar
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def months_before(value: datetime, months: int) -> datetime:
    """Same wall-clock time `months` calendar months earlier; day clamped to the target month's length."""
    month_index = value.month - 1 - months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
