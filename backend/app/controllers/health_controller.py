"""
Health controller.
"""

from typing import Optional, Tuple

from app.controllers.base_controller import BaseController
from app.schemas.health import HealthResponse
from app.services.health_service import HealthService


class HealthController(BaseController):
    """Controller for liveness and readiness checks."""

    def __init__(self, health_service: Optional[HealthService] = None):
        super().__init__()
        self.health_service = health_service or HealthService()

    async def get_health(self) -> HealthResponse:
        """Report status; callers decide whether degraded is fatal."""
        return await self.health_service.get_health()

    async def get_readiness(self) -> Tuple[HealthResponse, int]:
        """Report status with the HTTP code a load balancer should see."""
        health = await self.health_service.get_health()
        return health, (200 if health.is_ready else 503)
