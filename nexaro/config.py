"""
Application Configuration

Centralized configuration management using Pydantic settings.
Loads from environment variables with fallback to .env file.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Note: get_settings() is cached, so tests that need different values
    must set the environment before the app is imported (or clear the cache).
    """

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/nexaro_dev"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Session settings
    # The session cookie is a signed JWT carrying only the server-side session id
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "nexaro_session"
    SESSION_EXPIRE_MINUTES: int = 24 * 60

    # Password hashing (scrypt): N = 2**SCRYPT_ROUNDS
    # 2**15 * 8 * 128 bytes = 32 MiB per hash
    SCRYPT_ROUNDS: int = 15
    SCRYPT_BLOCK_SIZE: int = 8
    SCRYPT_PARALLELISM: int = 1

    # Invitations
    INVITATION_EXPIRE_HOURS: int = 48
    INVITE_TOKEN_LENGTH: int = 12

    # Outbound email (Resend)
    # Registration links default to the request's own base URL when unset
    FRONTEND_URL: Optional[str] = None
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "Nexaro CRM <no-reply@nexaro.com>"

    # Redis for rate limiting
    REDIS_URL: str = "redis://localhost:6379/0"

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5000"]

    # Rate limiting (per client IP, onboarding endpoints only)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 20
    RATE_LIMIT_BURST: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only instantiate settings once.
    """
    return Settings()
