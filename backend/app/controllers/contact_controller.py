"""
Contact controller.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.base_controller import BaseController
from app.services.contact_service import ContactService
from app.schemas.contact import (
    ContactFilter,
    ContactListResponse,
    ContactResponse,
    GroupContactResponse,
    GroupCreate,
    GroupListResponse,
    GroupSummaryResponse,
    GroupUpdate,
    MemberContactResponse,
    MemberCreate,
    MemberUpdate,
)
from app.schemas.tenant import TenantContext


class ContactController(BaseController):
    """Controller for contact group and member operations."""

    def __init__(self, session: AsyncSession, default_household_name: Optional[str] = None):
        super().__init__(session)
        self.contact_service = ContactService(session, default_household_name=default_household_name)

    # Groups

    async def list_groups(self, ctx: TenantContext, contact_filter: ContactFilter) -> GroupListResponse:
        """List groups for the tenant."""
        return await self.contact_service.list_groups(ctx, contact_filter)

    async def create_group(self, ctx: TenantContext, group_data: GroupCreate) -> GroupSummaryResponse:
        """Create a group."""
        return await self.contact_service.create_group(ctx, group_data)

    async def get_group(self, ctx: TenantContext, group_id: UUID) -> GroupContactResponse:
        """Get group by ID."""
        return await self.contact_service.get_group_by_id(ctx, group_id)

    async def update_group(
        self,
        ctx: TenantContext,
        group_id: UUID,
        group_data: GroupUpdate,
    ) -> GroupContactResponse:
        """Update a group."""
        return await self.contact_service.update_group(ctx, group_id, group_data)

    async def delete_group(self, ctx: TenantContext, group_id: UUID) -> None:
        """Delete a group and rehome its members."""
        await self.contact_service.delete_group(ctx, group_id)

    async def list_group_members(
        self,
        ctx: TenantContext,
        group_id: UUID,
        contact_filter: ContactFilter,
    ) -> ContactListResponse:
        """List members of a group."""
        return await self.contact_service.list_group_members(ctx, group_id, contact_filter)

    async def get_my_household(self, ctx: TenantContext) -> GroupContactResponse:
        """Get the tenant household."""
        return await self.contact_service.get_tenant_household(ctx)

    async def ensure_my_household(self, ctx: TenantContext, name: str) -> GroupContactResponse:
        """Create or rename the tenant household."""
        return await self.contact_service.ensure_tenant_household(ctx, name)

    # Members

    async def search_contacts(self, ctx: TenantContext, contact_filter: ContactFilter) -> ContactListResponse:
        """Search member contacts."""
        return await self.contact_service.search_contacts(ctx, contact_filter)

    async def create_contact(self, ctx: TenantContext, contact_data: MemberCreate) -> MemberContactResponse:
        """Create a member contact."""
        return await self.contact_service.create_contact(ctx, contact_data)

    async def get_contact(self, ctx: TenantContext, contact_id: UUID) -> ContactResponse:
        """Get any contact by ID."""
        return await self.contact_service.get_contact(ctx, contact_id)

    async def update_contact(
        self,
        ctx: TenantContext,
        contact_id: UUID,
        contact_data: MemberUpdate,
    ) -> MemberContactResponse:
        """Update a member contact."""
        return await self.contact_service.update_contact(ctx, contact_id, contact_data)

    async def delete_contact(self, ctx: TenantContext, contact_id: UUID) -> None:
        """Delete a member contact."""
        await self.contact_service.delete_contact(ctx, contact_id)

    async def move_to_group(self, ctx: TenantContext, contact_id: UUID, group_id: UUID) -> None:
        """Move a member contact to another group."""
        await self.contact_service.move_contact_to_group(ctx, contact_id, group_id)
