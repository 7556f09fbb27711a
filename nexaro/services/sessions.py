"""
Session Principal

Server-side sessions. The cookie carries a signed session id; the session
row maps it to a user id; the user row is re-read on every request so role
and organization changes take effect immediately.
"""
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from nexaro.config import get_settings
from nexaro.core.exceptions import NotAuthenticated
from nexaro.core.security import create_session_token, decode_session_token, generate_session_id
from nexaro.models.session import UserSession
from nexaro.models.user import User
from nexaro.utils.clock import utcnow
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


class SessionService:
    @staticmethod
    def establish(db: Session, user: User) -> str:
        """Create a session row for ``user`` and return the signed cookie value."""
        lifetime = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
        session_row = UserSession(
            id=generate_session_id(),
            user_id=user.id,
            expires_at=utcnow() + lifetime,
        )
        db.add(session_row)
        db.commit()

        logger.info(f"Session established for user {user.id}")
        return create_session_token(session_row.id, expires_delta=lifetime)

    @staticmethod
    def _load_session(db: Session, cookie_value: Optional[str]) -> Optional[UserSession]:
        if not cookie_value:
            return None
        payload = decode_session_token(cookie_value)
        if not payload or not payload.get("sid"):
            return None
        return db.get(UserSession, payload["sid"])

    @staticmethod
    def resolve_principal(db: Session, cookie_value: Optional[str]) -> User:
        """
        Resolve the user behind a session cookie.

        Raises NotAuthenticated for a missing, tampered, expired or revoked
        session, and for sessions whose user no longer exists.
        """
        session_row = SessionService._load_session(db, cookie_value)
        if session_row is None:
            raise NotAuthenticated()

        if session_row.expires_at <= utcnow():
            logger.debug(f"Expired session for user {session_row.user_id}")
            raise NotAuthenticated("Session expired")

        # Always a fresh read: never trust anything cached on the session
        user = db.get(User, session_row.user_id, populate_existing=True)
        if user is None:
            raise NotAuthenticated()
        return user

    @staticmethod
    def end(db: Session, cookie_value: Optional[str]) -> None:
        """Revoke the session behind ``cookie_value``. Unknown sessions are ignored."""
        session_row = SessionService._load_session(db, cookie_value)
        if session_row is None:
            return
        db.delete(session_row)
        db.commit()
        logger.info(f"Session ended for user {session_row.user_id}")
