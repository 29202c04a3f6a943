"""
Shared store plumbing: write results and SQLAlchemy error wrapping.
Stores own their session's transaction: every write commits before returning, and any
SQLAlchemyError rolls back and surfaces as StoreError (mapped to 500 by the app).
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weather_api.errors import StoreError
from weather_api.services.timeutils import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a bulk write: rows the filter matched and rows whose values actually changed."""
    matched: int = 0
    modified: int = 0


@contextmanager
def store_operation(db: Session, action: str, commit: bool = False):
    """Run a store operation; commit on success when asked, roll back and wrap on database errors."""
    try:
        yield
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Store operation '%s' failed: %s", action, e)
        raise StoreError(f"{action} failed") from e


def _same(old, new) -> bool:
    if isinstance(old, datetime) and isinstance(new, datetime):
        return as_utc(old) == as_utc(new)
    return old == new


def replace_fields(obj, values: dict, columns: tuple[str, ...], keep_when_absent: frozenset = frozenset()) -> bool:
    """
    Full-record replace of `columns` on obj from values. Columns missing from values are cleared,
    except those in keep_when_absent which keep the stored value. Returns True when anything changed.
    """
    changed = False
    for column in columns:
        new = values.get(column)
        if new is None and column in keep_when_absent:
            continue
        if not _same(getattr(obj, column), new):
            setattr(obj, column, new)
            changed = True
    return changed
