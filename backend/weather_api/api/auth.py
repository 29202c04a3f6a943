"""
Auth routes: register (role is always student), login (issues an opaque authentication key),
logout (clears it). Login failures never reveal whether the email exists.
"""
import logging
from fastapi import APIRouter, Depends

from weather_api.api.deps import get_user_store
from weather_api.api.users import user_to_response
from weather_api.errors import AuthenticationError, Conflict, InternalError, NotFound, RecordNotFound, StoreError
from weather_api.models.user import Role, User
from weather_api.schemas.auth import LoginRequest, LoginResponse, LogoutRequest, RegisterRequest, RegisterResponse
from weather_api.schemas.common import MessageResponse
from weather_api.services.auth import hash_password, new_authentication_key, verify_password
from weather_api.services.timeutils import utcnow
from weather_api.stores.users import UserStore

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, users: UserStore = Depends(get_user_store)):
    """Login with email/password; returns a new authentication key (any previous key stops working)."""
    user = users.get_by_email(data.email)
    if not user or not verify_password(data.password, user.password):
        logger.info("Login failed for %s", data.email)
        raise AuthenticationError("Invalid credentials")
    key = new_authentication_key()
    users.set_session(user, key, logged_in_at=utcnow())
    logger.info("User %s logged in", user.id)
    return LoginResponse(status=200, message="user logged in successful", authentication_key=key)


@router.post("/logout", response_model=MessageResponse)
def logout(data: LogoutRequest, users: UserStore = Depends(get_user_store)):
    """Clear the authentication key; 404 when no user holds it."""
    try:
        user = users.get_by_authentication_key(data.authentication_key)
    except RecordNotFound:
        raise NotFound("failed to find user")
    users.set_session(user, None)
    logger.info("User %s logged out", user.id)
    return MessageResponse(status=200, message="user logged out")


@router.post("/register", response_model=RegisterResponse)
def register(data: RegisterRequest, users: UserStore = Depends(get_user_store)):
    """Self-registration; the new account is always a student."""
    if users.get_by_email(data.email):
        logger.warning("Register rejected: email already in use")
        raise Conflict("Email address is already used with other account.")
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password=hash_password(data.password),
        role=Role.student.value,
        created_date=utcnow(),
        last_logged_in=None,
        authentication_key=None,
    )
    try:
        user = users.create(user)
    except StoreError as e:
        logger.exception("Register failed: %s", e)
        raise InternalError("Registration failed")
    logger.info("Registered user %s", user.id)
    return RegisterResponse(status=200, message="Registration successful", user=user_to_response(user))
