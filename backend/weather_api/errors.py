"""
Error taxonomy. HTTP-facing errors are HTTPException subclasses with fixed status codes,
raised from handlers and the authorization gate. Store-level errors are plain exceptions
that handlers map (RecordNotFound) or the app maps to 500 (StoreError).
"""
from fastapi import HTTPException, status

GENERIC_ERROR_MESSAGE = "Error processing request"


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        super().__init__(status_code=self.status_code, detail=message or self.default_message)


class ValidationError(ApiError):
    """Malformed id, page number or other input (400)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(ApiError):
    """Bad login credentials (401). Never says which of email/password was wrong."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class Forbidden(ApiError):
    """Role not allowed, or no user behind the X-AUTH-KEY header (403)."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ApiError):
    """Duplicate email or id (409)."""
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class RecordNotFound(LookupError):
    """Raised by stores when a lookup that must succeed finds nothing."""


class StoreError(RuntimeError):
    """Raised by stores when the database rejects an operation (wraps SQLAlchemyError)."""


class DuplicateRecord(StoreError):
    """Insert with an explicit id that already exists."""
