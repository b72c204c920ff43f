"""
FastAPI dependency injection providers.

Dependencies can be overridden in tests using app.dependency_overrides, making
it easy to inject an in-memory engine or custom settings.

Example:
    >>> @router.post("/bookings")
    ... def create_booking(
    ...     payload: BookingCreatePayload,
    ...     principal: Principal = Depends(require("booking", "create")),
    ...     engine: Engine = Depends(get_db_engine),
    ... ):
    ...     with engine.begin() as conn:
    ...         ...
"""

from __future__ import annotations

from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from skynest.config import LEGACY_SESSION_COOKIE, SESSION_COOKIE, Settings, get_settings
from skynest.db.engine import get_engine
from skynest.errors import AuthenticationRequired
from skynest.metrics import auth_failures
from skynest.services.access import authorize
from skynest.services.sessions import Principal, decode_session_token


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine
    """
    yield get_engine()


def get_current_principal(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[Principal]:
    """
    Decode the session cookie, if any.

    Returns:
        Optional[Principal]: None when there is no valid session
    """
    token = request.cookies.get(SESSION_COOKIE) or request.cookies.get(LEGACY_SESSION_COOKIE)
    if not token:
        return None
    return decode_session_token(token, settings)


def require_principal(
    principal: Optional[Principal] = Depends(get_current_principal),
) -> Principal:
    """Reject unauthenticated callers with 401."""
    if principal is None:
        auth_failures.labels(reason="unauthenticated").inc()
        raise AuthenticationRequired("Authentication required")
    return principal


def require(resource: str, action: str) -> Callable[..., Principal]:
    """
    Build a dependency enforcing the role rule for (resource, action).

    Args:
        resource: Resource family, e.g. "booking"
        action: Action on that resource, e.g. "create"

    Returns:
        A dependency returning the authorized Principal
    """

    def dependency(principal: Principal = Depends(require_principal)) -> Principal:
        authorize(principal, resource, action)
        return principal

    return dependency
