"""
Database Configuration and Session Management

SQLAlchemy setup with connection pooling.

Uniqueness of user emails and invitation tokens is enforced here, at the
persistence layer, via unique indexes. Several API instances may run against
the same database, so no in-process locking is relied upon.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool
from nexaro.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    """Pool options. SQLite (dev/test) does not take QueuePool sizing."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "poolclass": QueuePool,
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # Log SQL in debug mode
    **_engine_options(settings.DATABASE_URL),
)

# Session factory
# expire_on_commit=False lets handlers serialize ORM objects after commit.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


@event.listens_for(engine, "connect")
def set_connection_timezone(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    # Timestamps are stored as naive UTC; pin the session timezone (PostgreSQL only)
    if settings.DATABASE_URL.startswith("postgresql"):
        cursor = dbapi_connection.cursor()
        cursor.execute("SET TIME ZONE 'UTC'")
        cursor.close()
    logger.debug("New database connection established")


def get_db():
    """
    Dependency function that provides a database session.

    The session is closed after the request completes. Services decide
    where their transactions commit or roll back.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """
    Create database tables.

    Used in development and tests. Importing nexaro.models registers
    every table on Base.metadata.
    """
    import nexaro.models  # noqa: F401

    logger.warning("init_db() called - creating tables from metadata")
    Base.metadata.create_all(bind=bind or engine)
