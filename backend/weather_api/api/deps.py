"""
Shared dependencies: stores bound to the request's DB session, get_current_user from the
X-AUTH-KEY header, and RoleGate for per-operation role allow-lists.
Missing or unknown keys are 403 (not 401) on every protected route.
GatedRoute keeps the gate ahead of body decoding for routers that use it.
"""
import logging
from typing import Any, Callable, Coroutine

from fastapi import Depends, Header, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from sqlalchemy.orm import Session

from weather_api.database import get_db
from weather_api.errors import Forbidden, RecordNotFound
from weather_api.models.user import Role, User
from weather_api.stores.readings import ReadingStore
from weather_api.stores.users import UserStore

AUTH_HEADER = "X-AUTH-KEY"
logger = logging.getLogger(__name__)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_reading_store(db: Session = Depends(get_db)) -> ReadingStore:
    return ReadingStore(db)


def get_current_user(
    authentication_key: str | None = Header(None, alias=AUTH_HEADER),
    users: UserStore = Depends(get_user_store),
) -> User:
    """Resolve X-AUTH-KEY to a user; 403 when the header is missing or matches nobody."""
    if not (authentication_key or "").strip():
        logger.debug("Auth failed: no %s header in request", AUTH_HEADER)
        raise Forbidden(f"Not authenticated. Send header: {AUTH_HEADER}: <authentication key>")
    try:
        return users.get_by_authentication_key(authentication_key.strip())
    except RecordNotFound:
        logger.debug("Auth failed: unknown authentication key")
        raise Forbidden("Authentication key is not valid")


class RoleGate:
    """Dependency that lets a request through only when the caller's role is in `allowed`."""

    def __init__(self, allowed: frozenset[Role], message: str):
        self.allowed = allowed
        self.message = message

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        return self.check(current_user)

    def check(self, user: User) -> User:
        role = user.role_enum
        if role is None or role not in self.allowed:
            logger.warning("Denied user %s with role %r", user.id, user.role)
            raise Forbidden(self.message)
        return user

    def check_request(self, request: Request) -> User:
        """Gate a request outside dependency resolution, on a session from the (possibly overridden) get_db."""
        provider = request.app.dependency_overrides.get(get_db, get_db)
        sessions = provider()
        db = next(sessions)
        try:
            return self.check(get_current_user(request.headers.get(AUTH_HEADER), UserStore(db)))
        finally:
            sessions.close()


def _is_undecodable_body(exc: RequestValidationError) -> bool:
    return any(e.get("type") == "json_invalid" for e in exc.errors())


class GatedRoute(APIRoute):
    """
    FastAPI reads and decodes the JSON body before it resolves dependencies, so a body that is not
    JSON would be reported as 400 ahead of the role gate. This route class answers such requests
    from the gate instead: 403 for callers the route does not allow, the original 400 otherwise.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()
        gate = next((d.call for d in self.dependant.dependencies if isinstance(d.call, RoleGate)), None)
        if gate is None:
            return handler

        async def gated_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as exc:
                if _is_undecodable_body(exc):
                    await run_in_threadpool(gate.check_request, request)
                raise

        return gated_handler
