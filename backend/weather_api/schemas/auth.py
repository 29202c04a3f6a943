"""
Auth request/response schemas.
"""
from pydantic import EmailStr, field_validator

from weather_api.schemas.common import ApiModel, MessageResponse
from weather_api.schemas.user import UserResponse, check_password_length


class RegisterRequest(ApiModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password_length(v)


class LoginRequest(ApiModel):
    # Plain str: a malformed email is just another failed login (401), not a 400
    email: str
    password: str


class LogoutRequest(ApiModel):
    authentication_key: str


class LoginResponse(MessageResponse):
    authentication_key: str


class RegisterResponse(MessageResponse):
    user: UserResponse
