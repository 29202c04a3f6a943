"""
Application configuration from environment variables.
Loads .env from the backend directory so settings are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of weather_api/); loaded explicitly so it applies even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs and tests, postgresql for production
    database_url: str = "sqlite:///./weather_data.db"

    # Environment: set ENV=production in production; sqlite is refused there.
    env: str = ""

    # GET /readings/page/{page} returns this many readings per page
    readings_page_size: int = 5

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:8080"

    log_level: str = "INFO"
    debug: bool = False

    @field_validator("readings_page_size")
    @classmethod
    def _page_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("READINGS_PAGE_SIZE must be at least 1")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS string into list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
