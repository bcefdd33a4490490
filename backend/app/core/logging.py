"""
Logging setup.

Every line carries the tenant the record was logged for; services pass it
through ``extra={"tenant_id": ...}`` and records without one show ``-``.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [tenant=%(tenant_id)s] %(message)s"


class TenantContextFilter(logging.Filter):
    """Default ``tenant_id`` so the format string works for library loggers too."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "tenant_id"):
            record.tenant_id = "-"
        return True


def setup_logging() -> None:
    """
    Configure root logging for the service.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(TenantContextFilter())

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
    )

    # Set log levels for specific libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DB_ECHO else logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured",
        extra={"environment": settings.OTEL_ENVIRONMENT, "level": settings.LOG_LEVEL},
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
