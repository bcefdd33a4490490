"""
Tenant context passed explicitly into every contact operation.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class TenantContext(BaseModel):
    """Current tenant and (optionally) the acting user."""
    tenant_id: UUID
    user_id: Optional[UUID] = None

    class Config:
        frozen = True
