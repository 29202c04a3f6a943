"""
User model: auth (email + bcrypt password hash), role (admin | teacher | student | sensor),
session key (authentication_key) set on login and cleared on logout.
Email uniqueness is checked by the handlers before insert, not by a constraint.
"""
import enum
from datetime import datetime
from sqlalchemy import String, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from weather_api.database import Base
from weather_api.models.types import ObjectIdType, new_object_id


class Role(str, enum.Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"
    sensor = "sensor"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(ObjectIdType(), primary_key=True, default=new_object_id)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash, never plaintext
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.student.value)
    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    last_logged_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    authentication_key: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'teacher', 'student', 'sensor')", name="users_role_check"),
    )

    @property
    def role_enum(self) -> Role | None:
        try:
            return Role(self.role)
        except ValueError:
            return None
