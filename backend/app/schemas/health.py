"""
Health check response schemas.
"""

from typing import Dict

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness/readiness report. ``checks`` maps probe name to "ok" or an error."""
    status: str
    service: str
    version: str
    uptime: str
    checks: Dict[str, str] = {}

    @property
    def is_ready(self) -> bool:
        return self.status == "ok"
