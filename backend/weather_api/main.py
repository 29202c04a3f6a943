"""
FastAPI application entrypoint.
APIs: auth, readings, users. Run with: uvicorn weather_api.main:app --reload --port 8080

API base path: routes are mounted at root (no /api prefix).
  - Auth:     POST /auth/login, POST /auth/logout, POST /auth/register
  - Readings: GET /readings/{id}, GET /readings/page/{page}, POST /readings, PATCH /readings, ...
  - Users:    GET /users, GET /users/{id}, GET /users/key/{key}, POST /users, PUT /users/{id}, ...

Protected routes take the key returned by /auth/login in the X-AUTH-KEY header.
Every response body is an envelope: {"status": <int>, "message": <str>, ...payload}.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from weather_api.config import settings
from weather_api.errors import GENERIC_ERROR_MESSAGE, StoreError
from weather_api.api.auth import router as auth_router
from weather_api.api.readings import router as readings_router
from weather_api.api.users import router as users_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Weather Data API",
    description="JSON REST API for tracking weather data readings, with role-based access for users.",
    version="1.0.0",
)

_origins = settings.get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:8080"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(readings_router)
app.include_router(users_router)


def _envelope(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_code, "message": message, **extra})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
    response = _envelope(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed path/body values are 400 with the offending fields listed."""
    errors = [
        {"location": list(e.get("loc", ())), "message": e.get("msg", "")}
        for e in exc.errors()
    ]
    return _envelope(400, "Invalid request", errors=jsonable_encoder(errors))


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.exception("Store error on %s %s: %s", request.method, request.url.path, exc)
    detail = f"{GENERIC_ERROR_MESSAGE}: {exc}" if settings.debug else GENERIC_ERROR_MESSAGE
    return _envelope(500, detail)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    detail = f"{GENERIC_ERROR_MESSAGE}: {type(exc).__name__}" if settings.debug else GENERIC_ERROR_MESSAGE
    return _envelope(500, detail)


@app.on_event("startup")
def startup():
    """Configure logging and create tables."""
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    _log = logging.getLogger("weather_api.main")
    if settings.is_production and "sqlite" in settings.database_url:
        _log.warning("ENV=production but DATABASE_URL is sqlite. Set DATABASE_URL to a PostgreSQL database.")
    from weather_api.database import init_db
    init_db()
    _log.info("Readings page size: %s", settings.readings_page_size)


@app.get("/")
def root():
    """API info and where the docs live."""
    return {
        "status": 200,
        "message": "Weather Data API",
        "documentation": {"swagger": "/docs", "redoc": "/redoc", "openapi": "/openapi.json"},
    }


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {"status": "ok", "message": "Weather Data API"}
