"""
Authentication Endpoints

Open registration, invitation registration, login and logout.

Every successful registration or login establishes a server-side session
and sets the session cookie. Password hashing runs in the threadpool.
"""
from fastapi import APIRouter, Depends, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional

from nexaro.api.deps import get_current_user, get_session_cookie
from nexaro.config import get_settings
from nexaro.database import get_db
from nexaro.models.user import User
from nexaro.schemas.auth import LoginRequest, RegisterRequest, RegisterWithInviteRequest
from nexaro.schemas.base import MessageResponse
from nexaro.schemas.user import PrincipalResponse
from nexaro.services.onboarding import OnboardingService
from nexaro.services.sessions import SessionService
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["authentication"])


def _start_session(db: Session, user: User, response: Response) -> None:
    token = SessionService.establish(db, user)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
    )


@router.post("/register", response_model=PrincipalResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Open registration.

    Creates a new organization with the registering user as its founder.
    Joining an existing organization requires an invitation instead.
    """
    user = await run_in_threadpool(
        OnboardingService.register,
        db,
        registration.name,
        registration.email,
        registration.password,
        registration.organization_name,
    )
    _start_session(db, user, response)
    return user


@router.post("/register-with-invite", response_model=PrincipalResponse, status_code=status.HTTP_201_CREATED)
async def register_with_invite(
    registration: RegisterWithInviteRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Register by redeeming an invitation token.

    The new user joins the inviting organization with the invited role.
    Fails with InvalidToken, TokenUsed, TokenExpired, EmailMismatch or
    EmailAlreadyRegistered.
    """
    user = await run_in_threadpool(
        OnboardingService.register_with_invite,
        db,
        registration.invite_token,
        registration.name,
        registration.email,
        registration.password,
    )
    _start_session(db, user, response)
    return user


@router.post("/login", response_model=PrincipalResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Authenticate with email and password.

    SECURITY: Unknown email and wrong password both return the same 401.
    """
    user = await run_in_threadpool(
        OnboardingService.authenticate,
        db,
        credentials.email,
        credentials.password,
    )
    _start_session(db, user, response)
    return user


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    cookie_value: Optional[str] = Depends(get_session_cookie),
    db: Session = Depends(get_db)
):
    """Revoke the current session server-side and clear the cookie."""
    SessionService.end(db, cookie_value)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=PrincipalResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """The authenticated principal, freshly read from the database."""
    return current_user
