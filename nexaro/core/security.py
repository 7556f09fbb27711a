"""
Security Module

Credential store (password hashing) and session cookie signing.

SECURITY NOTES:
- Passwords are hashed with scrypt through passlib. Cost parameters are
  fixed in settings (SCRYPT_ROUNDS / SCRYPT_BLOCK_SIZE / SCRYPT_PARALLELISM)
  and written into every hash, so old hashes keep verifying if they change.
- The stored form is passlib's "$scrypt$ln=..,r=..,p=..$<salt>$<key>",
  i.e. salt and derived key travel together.
- passlib compares derived keys in constant time.
- Session cookies are JWTs that only carry a server-side session id.
"""
from datetime import timedelta
from typing import Optional, Dict, Any
import secrets
import string
from jose import JWTError, jwt
from passlib.context import CryptContext
from nexaro.config import get_settings
from nexaro.core.exceptions import CorruptCredential
from nexaro.utils.clock import utcnow

settings = get_settings()

pwd_context = CryptContext(
    schemes=["scrypt"],
    scrypt__rounds=settings.SCRYPT_ROUNDS,
    scrypt__block_size=settings.SCRYPT_BLOCK_SIZE,
    scrypt__parallelism=settings.SCRYPT_PARALLELISM,
)

# 64 URL-safe symbols -> 6 bits of entropy per character
INVITE_TOKEN_ALPHABET = string.ascii_letters + string.digits + "-_"


def get_password_hash(password: str) -> str:
    """
    Hash a password with a fresh random salt.

    NOTE: This is intentionally slow and memory hungry. Request handlers
    call it through run_in_threadpool so it does not block the event loop.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str, user_id=None) -> bool:
    """
    Verify a password against its stored hash.

    Raises CorruptCredential if the stored hash is not a well-formed scrypt
    hash. A malformed hash must never be reported as a plain mismatch.
    """
    if not hashed_password or pwd_context.identify(hashed_password) is None:
        raise CorruptCredential(user_id=user_id)
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as exc:
        raise CorruptCredential(user_id=user_id) from exc


def generate_invite_token(length: Optional[int] = None) -> str:
    """Random URL-safe invitation token."""
    length = length or settings.INVITE_TOKEN_LENGTH
    return "".join(secrets.choice(INVITE_TOKEN_ALPHABET) for _ in range(length))


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a session cookie value.

    Payload:
    - sid: server-side session id
    - exp / iat: expiry and issue time

    The cookie deliberately carries no user id, role or organization.
    """
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES))
    to_encode = {"sid": session_id, "exp": expire, "iat": now}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a session cookie value.

    Returns the payload if valid, None if invalid, expired or tampered with.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
