"""
Contact API endpoints.

Group routes are declared before ``/{contact_id}`` so that ``/groups`` and
``/my-household`` are not captured by the ID route.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.v1.middleware import get_tenant_context
from app.deps.di_container import get_container
from app.core.config import settings
from app.db.session import get_db
from app.models.contact import ContactType, ContactVisibilityLevel
from app.models.contact_relationship import RelationshipType
from app.schemas.contact import (
    ContactFilter,
    ContactListResponse,
    ContactResponse,
    GroupContactResponse,
    GroupCreate,
    GroupListResponse,
    GroupSummaryResponse,
    GroupUpdate,
    HouseholdEnsureRequest,
    MemberContactResponse,
    MemberCreate,
    MemberUpdate,
)
from app.schemas.tenant import TenantContext

router = APIRouter()


def contact_filter_params(
    search_term: Optional[str] = Query(None, max_length=200),
    visibility: Optional[ContactVisibilityLevel] = Query(None),
    tag_ids: Optional[List[UUID]] = Query(None),
    is_active: Optional[bool] = Query(None),
    is_user_linked: Optional[bool] = Query(None),
    contact_type: Optional[ContactType] = Query(None),
    parent_contact_id: Optional[UUID] = Query(None),
    related_to_contact_id: Optional[UUID] = Query(None),
    relationship_type: Optional[RelationshipType] = Query(None),
    sort_by: Optional[str] = Query(None, max_length=50),
    sort_descending: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> ContactFilter:
    """Collect list/search query parameters into a ContactFilter."""
    return ContactFilter(
        search_term=search_term,
        visibility=visibility,
        tag_ids=tag_ids,
        is_active=is_active,
        is_user_linked=is_user_linked,
        contact_type=contact_type,
        parent_contact_id=parent_contact_id,
        related_to_contact_id=related_to_contact_id,
        relationship_type=relationship_type,
        sort_by=sort_by,
        sort_descending=sort_descending,
        page=page,
        page_size=page_size,
    )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

@router.get("/groups", response_model=GroupListResponse)
async def list_groups(
    contact_filter: ContactFilter = Depends(contact_filter_params),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupListResponse:
    """List household and business groups."""
    controller = get_container().contact_controller(session=db)
    return await controller.list_groups(ctx, contact_filter)


@router.post("/groups", response_model=GroupSummaryResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupSummaryResponse:
    """Create a new group."""
    controller = get_container().contact_controller(session=db)
    return await controller.create_group(ctx, group_data)


@router.get("/groups/{group_id}", response_model=GroupContactResponse)
async def get_group(
    group_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupContactResponse:
    """Get group by ID."""
    controller = get_container().contact_controller(session=db)
    return await controller.get_group(ctx, group_id)


@router.put("/groups/{group_id}", response_model=GroupContactResponse)
async def update_group(
    group_id: UUID,
    group_data: GroupUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupContactResponse:
    """Update a group."""
    controller = get_container().contact_controller(session=db)
    return await controller.update_group(ctx, group_id, group_data)


@router.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a group; its members move to the tenant household."""
    controller = get_container().contact_controller(session=db)
    await controller.delete_group(ctx, group_id)


@router.get("/groups/{group_id}/members", response_model=ContactListResponse)
async def list_group_members(
    group_id: UUID,
    contact_filter: ContactFilter = Depends(contact_filter_params),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ContactListResponse:
    """List members of a group."""
    controller = get_container().contact_controller(session=db)
    return await controller.list_group_members(ctx, group_id, contact_filter)


@router.get("/my-household", response_model=GroupContactResponse)
async def get_my_household(
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupContactResponse:
    """Get the tenant household."""
    controller = get_container().contact_controller(session=db)
    return await controller.get_my_household(ctx)


@router.put("/my-household", response_model=GroupContactResponse)
async def ensure_my_household(
    household_data: HouseholdEnsureRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> GroupContactResponse:
    """Create the tenant household, or rename it if it exists."""
    controller = get_container().contact_controller(session=db)
    return await controller.ensure_my_household(ctx, household_data.name)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get("", response_model=ContactListResponse)
async def search_contacts(
    contact_filter: ContactFilter = Depends(contact_filter_params),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ContactListResponse:
    """Search member contacts."""
    controller = get_container().contact_controller(session=db)
    return await controller.search_contacts(ctx, contact_filter)


@router.post("", response_model=MemberContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    contact_data: MemberCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> MemberContactResponse:
    """Create a member contact."""
    controller = get_container().contact_controller(session=db)
    return await controller.create_contact(ctx, contact_data)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Get a contact; groups and members come back in their own shapes."""
    controller = get_container().contact_controller(session=db)
    return await controller.get_contact(ctx, contact_id)


@router.put("/{contact_id}", response_model=MemberContactResponse)
async def update_contact(
    contact_id: UUID,
    contact_data: MemberUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> MemberContactResponse:
    """Update a member contact."""
    controller = get_container().contact_controller(session=db)
    return await controller.update_contact(ctx, contact_id, contact_data)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a member contact."""
    controller = get_container().contact_controller(session=db)
    await controller.delete_contact(ctx, contact_id)


@router.put("/{contact_id}/move-to-group/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def move_to_group(
    contact_id: UUID,
    group_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Move a member contact to another group."""
    controller = get_container().contact_controller(session=db)
    await controller.move_to_group(ctx, contact_id, group_id)
