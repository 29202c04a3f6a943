"""
Input checks that run after the role gate and before any store call.
"""
from weather_api.errors import ValidationError
from weather_api.models.types import is_object_id

INVALID_ID_MESSAGE = "Invalid ID format"


def require_object_id(value: str) -> str:
    if not is_object_id(value):
        raise ValidationError(INVALID_ID_MESSAGE)
    return value.lower()


def require_object_ids(values: list[str]) -> list[str]:
    """All-or-nothing: one malformed id rejects the whole batch."""
    return [require_object_id(v) for v in values]


def require_page(page: int) -> int:
    if page < 1:
        raise ValidationError("Page must be a positive number")
    return page
