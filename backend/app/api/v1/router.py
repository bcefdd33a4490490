"""
API v1 router that aggregates all endpoint routers.
Contact routes require a tenant context; health is public.
"""

from fastapi import APIRouter, Depends

from app.api.v1.middleware import get_tenant_context
from app.api.v1.endpoints import (
    health,
    contacts,
)

api_router = APIRouter()

# Public routes
api_router.include_router(health.router, tags=["health"])

# Tenant-scoped routes
api_router.include_router(
    contacts.router,
    prefix="/contacts",
    tags=["contacts"],
    dependencies=[Depends(get_tenant_context)],
)
