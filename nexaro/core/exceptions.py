"""
Custom Exceptions

Centralized exception definitions for the onboarding and authorization
layer. Every error is an HTTPException subclass with a stable ``error_type``
that clients can branch on; main.py renders them as
``{"detail": ..., "type": error_type}``.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for errors with a machine-readable type."""

    error_type = "Error"

    def __init__(self, status_code: int, detail: str, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


# ----------------------------------------------------------------------------
# Authentication / authorization
# ----------------------------------------------------------------------------

class NotAuthenticated(AppError):
    """No session, an invalid session, or bad credentials."""

    error_type = "NotAuthenticated"

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class InsufficientPermissions(AppError):
    """The principal's role is not in the operation's allow-list."""

    error_type = "InsufficientPermissions"

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class AccessDenied(AppError):
    """
    Resource belongs to another tenant, or does not exist at all.

    SECURITY: Both cases must produce the exact same response so callers
    cannot discover which ids exist in other tenants. Do not customize the
    detail with anything resource-specific.
    """

    error_type = "AccessDenied"

    def __init__(self):
        super().__init__(status.HTTP_403_FORBIDDEN, "Access denied")


class NoOrganization(AppError):
    """The principal is not attached to any organization."""

    error_type = "NoOrganization"

    def __init__(self, detail: str = "User not associated with an organization"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


# ----------------------------------------------------------------------------
# Onboarding
# ----------------------------------------------------------------------------

class EmailAlreadyRegistered(AppError):
    error_type = "EmailAlreadyRegistered"

    def __init__(self, detail: str = "Email already registered"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class InvalidToken(AppError):
    error_type = "InvalidToken"

    def __init__(self, detail: str = "Invalid invitation token", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code, detail)


class TokenUsed(AppError):
    error_type = "TokenUsed"

    def __init__(self, detail: str = "Invitation has already been used"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class TokenExpired(AppError):
    error_type = "TokenExpired"

    def __init__(self, detail: str = "Invitation has expired"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class EmailMismatch(AppError):
    error_type = "EmailMismatch"

    def __init__(self, detail: str = "Email does not match invitation"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


# ----------------------------------------------------------------------------
# Data integrity
# ----------------------------------------------------------------------------

class CorruptCredential(AppError):
    """
    A stored password hash cannot be parsed.

    This means data corruption (or a bad migration). It is never treated
    as a wrong password: it is logged and surfaced as a 500.
    """

    error_type = "CorruptCredential"

    def __init__(self, user_id=None):
        self.user_id = user_id
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


class RateLimitExceeded(AppError):
    """Raised when rate limit is exceeded."""

    error_type = "RateLimitExceeded"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)}
        )
