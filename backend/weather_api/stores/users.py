"""
Identity store: users table CRUD, lookups by email/authentication key, and the
operator-only bulk operations (role change by createdDate window, delete by role + lastLoggedIn window).
"""
import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from weather_api.errors import DuplicateRecord, RecordNotFound
from weather_api.models.types import new_object_id
from weather_api.models.user import Role, User
from weather_api.services.timeutils import as_utc
from weather_api.stores.base import WriteResult, replace_fields, store_operation

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "first_name",
    "last_name",
    "email",
    "password",
    "role",
    "created_date",
    "last_logged_in",
    "authentication_key",
)
# An update that leaves these out keeps what is stored
KEEP_WHEN_ABSENT = frozenset({"password", "created_date", "last_logged_in", "authentication_key"})


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User:
        with store_operation(self.db, "get user by id"):
            user = self.db.get(User, user_id.lower())
        if user is None:
            raise RecordNotFound(f"user {user_id} not found")
        return user

    def get_by_email(self, email: str) -> User | None:
        """Existence check for registration and user creation; None when unused."""
        with store_operation(self.db, "get user by email"):
            return self.db.scalars(select(User).where(User.email == email).limit(1)).first()

    def get_by_authentication_key(self, key: str) -> User:
        if not key:
            raise RecordNotFound("empty authentication key")
        with store_operation(self.db, "get user by authentication key"):
            user = self.db.scalars(select(User).where(User.authentication_key == key).limit(1)).first()
        if user is None:
            raise RecordNotFound("no user for authentication key")
        return user

    def get_all(self) -> list[User]:
        """Full unpaginated scan (operator-only endpoint)."""
        with store_operation(self.db, "get all users"):
            return list(self.db.scalars(select(User).order_by(User.created_date, User.id)))

    def create(self, user: User) -> User:
        """Insert with a new id; any id already on the object is replaced."""
        user.id = new_object_id()
        with store_operation(self.db, "create user", commit=True):
            self.db.add(user)
        self.db.refresh(user)
        return user

    def create_with_id(self, user_id: str, user: User) -> User:
        """
        Insert with an explicit id. Duplicate ids are rejected by the store (primary key)
        and raised as DuplicateRecord; nothing is overwritten.
        """
        user.id = user_id.lower()
        if self.db.get(User, user.id) is not None:
            raise DuplicateRecord(f"user {user.id} already exists")
        with store_operation(self.db, "create user with id"):
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError as e:
                # Lost a race with another insert of the same id
                self.db.rollback()
                raise DuplicateRecord(f"user {user.id} already exists") from e
        self.db.refresh(user)
        return user

    def create_many(self, users: list[User]) -> list[User]:
        for user in users:
            user.id = new_object_id()
        with store_operation(self.db, "create users", commit=True):
            self.db.add_all(users)
        for user in users:
            self.db.refresh(user)
        return users

    def update(self, user_id: str, values: dict) -> User | None:
        """Full-record replace. Returns the updated user, or None when no user has this id."""
        with store_operation(self.db, "update user", commit=True):
            user = self.db.get(User, user_id.lower())
            if user is None:
                return None
            replace_fields(user, values, USER_COLUMNS, KEEP_WHEN_ABSENT)
        self.db.refresh(user)
        return user

    def update_many(self, items: list[tuple[str, dict]]) -> WriteResult:
        """Per-record replace; ids with no user are skipped and only lower the counts."""
        matched = modified = 0
        with store_operation(self.db, "update users", commit=True):
            for user_id, values in items:
                user = self.db.get(User, user_id.lower())
                if user is None:
                    logger.debug("update_many: no user %s", user_id)
                    continue
                matched += 1
                if replace_fields(user, values, USER_COLUMNS, KEEP_WHEN_ABSENT):
                    modified += 1
        return WriteResult(matched=matched, modified=modified)

    def set_session(self, user: User, key: str | None, logged_in_at: datetime | None = None) -> User:
        """Store (or clear, with key=None) the authentication key; stamp lastLoggedIn when given. One write."""
        with store_operation(self.db, "update user session", commit=True):
            user.authentication_key = key
            if logged_in_at is not None:
                user.last_logged_in = as_utc(logged_in_at)
        return user

    def update_roles_by_created_date_range(self, start: datetime, end: datetime, role: Role) -> WriteResult:
        window = User.created_date.between(as_utc(start), as_utc(end))
        with store_operation(self.db, "update roles by created date range", commit=True):
            matched = self.db.scalar(select(func.count()).select_from(User).where(window)) or 0
            result = self.db.execute(
                update(User)
                .where(window, User.role != role.value)
                .values(role=role.value)
                .execution_options(synchronize_session=False)
            )
        return WriteResult(matched=matched, modified=result.rowcount or 0)

    def delete_by_id(self, user_id: str) -> int:
        with store_operation(self.db, "delete user", commit=True):
            result = self.db.execute(delete(User).where(User.id == user_id.lower()))
        return result.rowcount or 0

    def delete_many_by_ids(self, user_ids: list[str]) -> int:
        if not user_ids:
            return 0
        with store_operation(self.db, "delete users", commit=True):
            result = self.db.execute(delete(User).where(User.id.in_([i.lower() for i in user_ids])))
        return result.rowcount or 0

    def delete_many_by_last_logged_in_date_range(self, start: datetime, end: datetime, role: Role) -> int:
        with store_operation(self.db, "delete users by last login range", commit=True):
            result = self.db.execute(
                delete(User).where(
                    User.role == role.value,
                    User.last_logged_in.between(as_utc(start), as_utc(end)),
                ).execution_options(synchronize_session=False)
            )
        return result.rowcount or 0
