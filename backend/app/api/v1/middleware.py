"""
API middleware for tenant context and common concerns.
Every contact route resolves the caller's tenant through this dependency.
"""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.schemas.tenant import TenantContext


def _parse_uuid(raw: Optional[str], header: str, required: bool) -> Optional[UUID]:
    if not raw:
        if required:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Missing {header} header",
            )
        return None
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {header} header",
        )


async def get_tenant_context(request: Request) -> TenantContext:
    """
    Resolve the current tenant and user from the gateway-supplied headers.

    The upstream authentication layer is trusted to have set these; this
    dependency only parses them.

    Raises:
        HTTPException: 401 if the tenant header is missing or malformed
    """
    tenant_id = _parse_uuid(request.headers.get(settings.TENANT_HEADER), settings.TENANT_HEADER, required=True)
    user_id = _parse_uuid(request.headers.get(settings.USER_HEADER), settings.USER_HEADER, required=False)
    return TenantContext(tenant_id=tenant_id, user_id=user_id)
