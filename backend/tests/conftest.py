"""
Shared fixtures: a fresh in-memory SQLite database per test, a TestClient whose get_db
is overridden to use it, and helpers to seed users (logged in, one per role) and readings.
"""
import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weather_api.database import get_db, init_db
from weather_api.main import app
from weather_api.models import Reading, Role, User
from weather_api.models.types import new_object_id
from weather_api.services.auth import hash_password, new_authentication_key
from weather_api.services.timeutils import as_utc, utcnow

TEST_PASSWORD = "testpass123"
# bcrypt is slow on purpose; hash once for every seeded user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient with get_db overridden to the per-test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


def make_user(
    db,
    role: Role = Role.student,
    email: str | None = None,
    logged_in: bool = True,
    created_date: datetime | None = None,
    last_logged_in: datetime | None = None,
) -> User:
    """Insert a user directly; logged_in=True gives it an authentication key."""
    user = User(
        id=new_object_id(),
        first_name="Test",
        last_name=role.value.title(),
        email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
        password=TEST_PASSWORD_HASH,
        role=role.value,
        created_date=as_utc(created_date) if created_date else utcnow(),
        last_logged_in=as_utc(last_logged_in) if last_logged_in else None,
        authentication_key=new_authentication_key() if logged_in else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_reading(db, device_name: str = "Station_A", time: datetime | None = None, **measurements) -> Reading:
    reading = Reading(
        id=new_object_id(),
        device_name=device_name,
        time=as_utc(time) if time else utcnow(),
        **measurements,
    )
    db.add(reading)
    db.commit()
    db.refresh(reading)
    return reading


@pytest.fixture
def users_by_role(db):
    """One logged-in user per role."""
    return {role: make_user(db, role) for role in Role}


@pytest.fixture
def headers_for(users_by_role):
    """headers_for(Role.admin) -> {"X-AUTH-KEY": <admin's key>}."""

    def _headers(role: Role) -> dict:
        return {"X-AUTH-KEY": users_by_role[role].authentication_key}

    return _headers
