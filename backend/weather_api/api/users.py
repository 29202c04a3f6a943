"""
Users API: list, get by id, get by authentication key (unauthenticated), create (single, explicit id, bulk),
full update (single and bulk), delete (single and bulk), admin-only role change by createdDate range and
delete by role + lastLoggedIn range. Email addresses are unique per user; this is checked here, before insert.
"""
import logging

from fastapi import APIRouter, Depends

from weather_api.api.deps import GatedRoute, get_user_store
from weather_api.api.permissions import can_manage_users, can_run_user_lifecycle
from weather_api.api.validation import require_object_id, require_object_ids
from weather_api.errors import Conflict, DuplicateRecord, NotFound, RecordNotFound
from weather_api.models.user import User
from weather_api.schemas.common import CountResponse, IdsRequest, MessageResponse
from weather_api.schemas.user import (
    RoleDateRangeDelete,
    RoleDateRangeUpdate,
    RoleUpdateEnvelope,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserResponse,
    UserUpdate,
)
from weather_api.services.auth import ensure_password_hash
from weather_api.services.timeutils import utcnow
from weather_api.stores.users import UserStore

router = APIRouter(prefix="/users", tags=["users"], route_class=GatedRoute)
logger = logging.getLogger(__name__)

EMAIL_IN_USE_MESSAGE = "The provided email address is already in use"


def user_to_response(u: User) -> UserResponse:
    return UserResponse(
        id=str(u.id),
        first_name=u.first_name,
        last_name=u.last_name,
        email=u.email,
        role=u.role,
        created_date=u.created_date,
        last_logged_in=u.last_logged_in,
    )


def _new_user(data: UserCreate) -> User:
    """Operator-created account: no session yet, never logged in."""
    return User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password=ensure_password_hash(data.password),
        role=data.role.value,
        created_date=utcnow(),
        last_logged_in=None,
        authentication_key=None,
    )


def _replacement_values(data: UserUpdate) -> dict:
    values = data.model_dump(exclude={"id"})
    values["role"] = data.role.value
    if data.password is not None:
        values["password"] = ensure_password_hash(data.password)
    return values


def _ensure_email_free(users: UserStore, email: str, owner_id: str | None = None) -> None:
    existing = users.get_by_email(email)
    if existing is not None and existing.id != owner_id:
        logger.warning("Rejected duplicate email for user %s", owner_id or "<new>")
        raise Conflict(EMAIL_IN_USE_MESSAGE)


@router.get("", response_model=UserListEnvelope)
def get_all_users(
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """All users; an empty list is still 200."""
    return UserListEnvelope(
        status=200,
        message="Get all users successfully",
        users=[user_to_response(u) for u in users.get_all()],
    )


@router.get("/key/{authentication_key}", response_model=UserEnvelope)
def get_user_by_authentication_key(
    authentication_key: str,
    users: UserStore = Depends(get_user_store),
):
    """Who holds this key. Open to any caller: knowing the key is the credential."""
    try:
        user = users.get_by_authentication_key(authentication_key)
    except RecordNotFound:
        raise NotFound("User not found with the given authentication key")
    return UserEnvelope(status=200, message="Get user by authentication key", user=user_to_response(user))


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user_by_id(
    user_id: str,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    require_object_id(user_id)
    try:
        user = users.get_by_id(user_id)
    except RecordNotFound:
        raise NotFound(f"User not found with ID: {user_id}")
    return UserEnvelope(status=200, message="Get user by ID successfully", user=user_to_response(user))


@router.post("", response_model=UserEnvelope)
def create_user(
    data: UserCreate,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    _ensure_email_free(users, data.email)
    user = users.create(_new_user(data))
    logger.info("User %s created by %s", user.id, current_user.id)
    return UserEnvelope(status=200, message="User created successfully", user=user_to_response(user))


@router.put("/{user_id}", response_model=UserEnvelope)
def create_user_with_id(
    user_id: str,
    data: UserCreate,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """Create a user under a caller-chosen id. An id that is already taken is rejected (409), never overwritten."""
    user_id = require_object_id(user_id)
    _ensure_email_free(users, data.email)
    try:
        user = users.create_with_id(user_id, _new_user(data))
    except DuplicateRecord:
        raise Conflict(f"A user already exists with ID: {user_id}")
    logger.info("User %s created by %s", user.id, current_user.id)
    return UserEnvelope(status=200, message="User created with id successfully", user=user_to_response(user))


@router.post("/many", response_model=UserListEnvelope)
def create_users(
    data: list[UserCreate],
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """Bulk create. Any email already stored, or repeated within the batch, rejects the whole batch."""
    seen: set[str] = set()
    for item in data:
        if item.email in seen:
            raise Conflict(EMAIL_IN_USE_MESSAGE)
        seen.add(item.email)
        _ensure_email_free(users, item.email)
    created = users.create_many([_new_user(d) for d in data])
    logger.info("%s users created by %s", len(created), current_user.id)
    return UserListEnvelope(
        status=200,
        message=f"Created {len(created)} users successfully",
        users=[user_to_response(u) for u in created],
    )


@router.patch("/update/user", response_model=UserEnvelope)
def update_user(
    data: UserUpdate,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """Replace a user by _id. createdDate, lastLoggedIn, authenticationKey and password are kept when omitted."""
    user_id = require_object_id(data.id)
    _ensure_email_free(users, data.email, owner_id=user_id)
    user = users.update(user_id, _replacement_values(data))
    if user is None:
        raise NotFound(f"User not found with ID: {user_id}")
    return UserEnvelope(status=200, message="User updated successfully", user=user_to_response(user))


@router.patch("/update/many", response_model=CountResponse)
def update_users(
    data: list[UserUpdate],
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """Replace several users. Unknown ids are skipped; 404 only when nothing changed. An email repeated in the batch is 409."""
    ids = require_object_ids([d.id for d in data])
    seen: set[str] = set()
    for user_id, item in zip(ids, data):
        if item.email in seen:
            raise Conflict(EMAIL_IN_USE_MESSAGE)
        seen.add(item.email)
        _ensure_email_free(users, item.email, owner_id=user_id)
    result = users.update_many([(i, _replacement_values(d)) for i, d in zip(ids, data)])
    if result.modified == 0:
        raise NotFound("No users were updated")
    logger.info("%s updated %s of %s users", current_user.id, result.modified, len(data))
    return CountResponse(status=200, message=f"{result.modified} users updated successfully", count=result.modified)


@router.patch("/update/usersrole", response_model=RoleUpdateEnvelope)
def update_roles_by_date_range(
    data: RoleDateRangeUpdate,
    current_user: User = Depends(can_run_user_lifecycle),
    users: UserStore = Depends(get_user_store),
):
    """Set the role of every user created between startDate and endDate (inclusive)."""
    result = users.update_roles_by_created_date_range(data.start_date, data.end_date, data.role)
    if result.matched == 0:
        raise NotFound("Users not found to update roles")
    logger.info("%s set role %s on %s users", current_user.id, data.role.value, result.modified)
    return RoleUpdateEnvelope(
        status=200,
        message="Updated the roles of users by date range successfully",
        matched_count=result.matched,
        modified_count=result.modified,
    )


@router.delete("/delete/many", response_model=CountResponse)
def delete_users(
    data: IdsRequest,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    """Delete every listed user that exists; 404 only when none did."""
    ids = require_object_ids(data.ids)
    deleted = users.delete_many_by_ids(ids)
    if deleted == 0:
        raise NotFound("Users not found to delete")
    logger.info("%s deleted %s users", current_user.id, deleted)
    return CountResponse(status=200, message=f"{deleted} users deleted successfully", count=deleted)


@router.delete("/delete/deleterolesbydaterange", response_model=CountResponse)
def delete_users_by_role_and_last_login(
    data: RoleDateRangeDelete,
    current_user: User = Depends(can_run_user_lifecycle),
    users: UserStore = Depends(get_user_store),
):
    """Delete users of userRole whose lastLoggedIn falls between startDate and endDate (inclusive)."""
    deleted = users.delete_many_by_last_logged_in_date_range(data.start_date, data.end_date, data.user_role)
    window = f"{data.start_date.isoformat()} and {data.end_date.isoformat()}"
    if deleted == 0:
        raise NotFound(f"No users found with {data.user_role.value} role and last logged in between {window}")
    logger.info("%s deleted %s %s users by last login", current_user.id, deleted, data.user_role.value)
    return CountResponse(
        status=200,
        message=f"Deleted {deleted} users with {data.user_role.value} role and last logged in between {window} successfully",
        count=deleted,
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    current_user: User = Depends(can_manage_users),
    users: UserStore = Depends(get_user_store),
):
    require_object_id(user_id)
    if users.delete_by_id(user_id) == 0:
        raise NotFound("User ID not found")
    return MessageResponse(status=200, message="User deleted successfully")
