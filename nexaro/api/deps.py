"""
API Dependencies

Principal resolution and authorization, as FastAPI dependencies.

PATTERN: The principal is resolved per request from the session cookie and
handed to endpoints as an explicit parameter. Nothing about the user is
kept in global or middleware state.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from nexaro.config import get_settings
from nexaro.core.permissions import Operation, authorize
from nexaro.database import get_db
from nexaro.models.user import User
from nexaro.services.sessions import SessionService

settings = get_settings()


def get_session_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    cookie_value: Optional[str] = Depends(get_session_cookie),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated principal.

    Raises NotAuthenticated (401) when there is no valid session.
    PERFORMANCE NOTE: two primary-key reads per request (session, user).
    """
    return SessionService.resolve_principal(db, cookie_value)


def require(operation: Operation) -> Callable:
    """
    Dependency factory: principal must be allowed to perform ``operation``.

    Usage:
        current_user: User = Depends(require(Operation.UPDATE_ORGANIZATION))
    """

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        authorize(current_user, operation)
        return current_user

    return dependency


def get_link_base_url(request: Request) -> str:
    """Base URL for links sent by email: FRONTEND_URL, else this request's origin."""
    if settings.FRONTEND_URL:
        return settings.FRONTEND_URL
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"
