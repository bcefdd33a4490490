"""
Health service.
Runs the database probes and reports service status and uptime.
"""

import time

from app.core.config import settings
from app.core.logging import get_logger
from app.db.repositories.health_repository import HealthRepository
from app.db.session import session_scope
from app.services.base_service import BaseService
from app.schemas.health import HealthResponse

logger = get_logger(__name__)


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(self):
        self.start_time = time.time()

    async def get_health(self) -> HealthResponse:
        """
        Get system health status.

        Uses its own short-lived session so a broken request session never
        masks the real database state.
        """
        uptime_seconds = int(time.time() - self.start_time)
        checks = {}

        try:
            async with session_scope() as session:
                repo = HealthRepository(session=session)
                checks["database"] = "ok" if await repo.check_database() else "error"
                if checks["database"] == "ok":
                    checks["contacts_schema"] = "ok" if await repo.check_contacts_table() else "error"
        except Exception as e:
            logger.warning("Database health check failed", extra={"error": str(e)})
            checks["database"] = f"error: {str(e)}"

        status = "ok" if all(check == "ok" for check in checks.values()) else "degraded"
        if status != "ok":
            logger.warning("Service degraded", extra={"checks": checks})

        return HealthResponse(
            status=status,
            service=settings.PROJECT_NAME,
            version=settings.VERSION,
            uptime=f"PT{uptime_seconds}S",  # ISO 8601 duration
            checks=checks,
        )
