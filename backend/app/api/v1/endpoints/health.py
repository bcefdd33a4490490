"""
Health check endpoints.
``/health`` is liveness and always answers 200; ``/health/ready`` answers 503
while the database or the contacts schema is unavailable.
"""

from fastapi import APIRouter, Response

from app.deps.di_container import get_container
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def get_health() -> HealthResponse:
    """Liveness check with uptime and probe results."""
    controller = get_container().health_controller()
    return await controller.get_health()


@router.get("/health/ready", response_model=HealthResponse)
async def get_readiness(response: Response) -> HealthResponse:
    """Readiness check for load balancers."""
    controller = get_container().health_controller()
    health, status_code = await controller.get_readiness()
    response.status_code = status_code
    return health
