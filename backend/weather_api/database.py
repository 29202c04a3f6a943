"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (local runs and tests).
The engine is process-wide; each request gets its own session through get_db.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from weather_api.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None):
    """Create the users and readings tables if missing. Call once at app startup."""
    # Import all models so they register with Base before create_all
    from weather_api.models import user, reading  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database ready (%s)", "sqlite" if _is_sqlite else engine.url.get_backend_name())


def get_db():
    """Dependency: yield a DB session, close after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
