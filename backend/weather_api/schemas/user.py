"""
User request/response schemas. Responses never carry the password hash or the authentication key.
"""
from pydantic import EmailStr, Field, field_validator

from weather_api.models.user import Role
from weather_api.schemas.common import ApiModel, MessageResponse, UtcDatetime
from weather_api.services.auth import BCRYPT_MAX_BYTES


def check_password_length(v: str | None) -> str | None:
    """Reject passwords bcrypt would truncate, so every accepted byte counts."""
    if v is None:
        return v
    if not v:
        raise ValueError("Password must not be empty")
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes (bcrypt limit)")
    return v


class UserCreate(ApiModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    role: Role

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password_length(v)


class UserUpdate(ApiModel):
    """Full replace of a user. password, createdDate, lastLoggedIn and authenticationKey keep stored values when omitted."""
    id: str = Field(alias="_id")
    first_name: str
    last_name: str
    email: EmailStr
    password: str | None = None
    role: Role
    created_date: UtcDatetime | None = None
    last_logged_in: UtcDatetime | None = None
    authentication_key: str | None = None

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str | None) -> str | None:
        return check_password_length(v)


class RoleDateRangeUpdate(ApiModel):
    start_date: UtcDatetime
    end_date: UtcDatetime
    role: Role


class RoleDateRangeDelete(ApiModel):
    start_date: UtcDatetime
    end_date: UtcDatetime
    user_role: Role


class UserResponse(ApiModel):
    id: str = Field(alias="_id")
    first_name: str | None
    last_name: str | None
    email: str
    role: Role
    created_date: UtcDatetime
    last_logged_in: UtcDatetime | None = None


class UserEnvelope(MessageResponse):
    user: UserResponse


class UserListEnvelope(MessageResponse):
    users: list[UserResponse]


class RoleUpdateEnvelope(MessageResponse):
    matched_count: int
    modified_count: int
