"""
Logging Configuration

Human-readable logs in development, one JSON object per line in production.

Every record carries the id of the request it was emitted under (set by the
request middleware in main.py), so the lines of one onboarding attempt can
be pulled together across modules.
"""
import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

from nexaro.utils.clock import utcnow

# Set per request by the HTTP middleware; None outside of a request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamp the current request id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_ctx.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Structured formatter for log aggregation."""

    # Keys passed through ``extra=`` that end up in the JSON document
    EXTRA_FIELDS = (
        "request_id",
        "organization_id",
        "user_id",
        "security_event",
        "event_type",
        "reason",
        "operation",
        "path",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure the root logger.

    Call once at startup; calling again replaces the previous handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(request_id)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)

    # Third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(event_type: str, details: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Record a security-relevant event at WARNING.

    Event types:
    - failed_login
    - insufficient_permissions
    - tenant_isolation_violation
    - invitation_rejected
    - rate_limit_exceeded
    """
    logger.warning(
        f"SECURITY EVENT: {event_type} {details}",
        extra={"security_event": True, "event_type": event_type, **details}
    )
