"""
DB types that work on both SQLite (local runs, tests) and PostgreSQL.
Record ids are ObjectId-shaped: 24 lowercase hex chars, 4-byte creation time + 8 random bytes.
"""
import os
import re
import time

from sqlalchemy import String, TypeDecorator

OBJECT_ID_RE = re.compile(r"[0-9a-fA-F]{24}")


def is_object_id(value) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_RE.fullmatch(value))


def new_object_id() -> str:
    """New 24-hex id; leading timestamp keeps ids roughly in creation order."""
    return int(time.time()).to_bytes(4, "big").hex() + os.urandom(8).hex()


class ObjectIdType(TypeDecorator):
    """24-hex id stored as string(24); normalized to lowercase so lookups are case-insensitive."""
    impl = String(24)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value).lower()

    def process_result_value(self, value, dialect):
        return value
