"""
Contact service with business logic.

Enforces the group/member hierarchy: one undeletable household root per
tenant, groups are never nested or moved, members always belong to a group,
and deleting a group hands its members to the tenant household.
"""

from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.repositories.base_repository import BaseRepository
from app.db.repositories.contact_repository import ContactRepository
from app.db.repositories.tag_repository import TagRepository
from app.models.contact import Contact, ContactType, ContactVisibilityLevel
from app.models.tag import ContactTag
from app.models.user import User
from app.schemas.contact import (
    ContactFilter,
    ContactListResponse,
    GroupContactResponse,
    GroupCreate,
    GroupListResponse,
    GroupSummaryResponse,
    GroupUpdate,
    MemberContactResponse,
    MemberCreate,
    MemberSummary,
    MemberUpdate,
    TagSummary,
)
from app.schemas.tenant import TenantContext
from app.services.base_service import BaseService

logger = get_logger(__name__)

# Explicit nulls for these are ignored on member update
_NON_NULLABLE_MEMBER_FIELDS = {
    "gender",
    "birth_date_precision",
    "death_date_precision",
    "visibility",
    "uses_group_address",
    "is_active",
}

# A member must keep at least one of these
_NAME_FIELDS = ("first_name", "last_name", "preferred_name", "company_name")


def _business_fields(contact_type: ContactType, website: Optional[str], category: Optional[str]):
    """Households never carry business-only fields."""
    if contact_type == ContactType.HOUSEHOLD:
        return None, None
    return website, category


def _primary_address(contact: Contact) -> Optional[str]:
    links = list(contact.addresses or [])
    if not links:
        return None
    primary = next((link for link in links if link.is_primary), links[0])
    return primary.address.formatted if primary.address else None


class ContactService(BaseService):
    """Service for contact group and member operations."""

    def __init__(self, session: AsyncSession, default_household_name: Optional[str] = None):
        self.session = session
        self.default_household_name = default_household_name or settings.DEFAULT_HOUSEHOLD_NAME
        self.contact_repo = ContactRepository(session)
        self.tag_repo = TagRepository(session)
        self.user_repo = BaseRepository(User, session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_contact(self, ctx: TenantContext, contact_id: UUID) -> Contact:
        contact = await self.contact_repo.get(ctx.tenant_id, contact_id)
        if not contact:
            raise NotFoundError("Contact", contact_id)
        return contact

    async def _get_group(self, ctx: TenantContext, group_id: UUID) -> Contact:
        contact = await self._get_contact(ctx, group_id)
        if not contact.is_group:
            raise InvalidStateError("Contact is not a group", {"id": str(group_id)})
        return contact

    async def _get_target_group(self, ctx: TenantContext, group_id: UUID) -> Contact:
        """Resolve a group that a member is being attached to."""
        group = await self.contact_repo.get(ctx.tenant_id, group_id)
        if not group:
            raise NotFoundError("Contact group", group_id)
        if not group.is_group:
            raise InvalidStateError("Target contact is not a group", {"id": str(group_id)})
        return group

    async def _resolve_tags(self, ctx: TenantContext, tag_ids: Optional[Iterable[UUID]]) -> List[ContactTag]:
        if not tag_ids:
            return []
        wanted = set(tag_ids)
        tags = await self.tag_repo.list_by_ids(ctx.tenant_id, wanted)
        missing = wanted - {tag.id for tag in tags}
        if missing:
            raise ValidationError(
                "Unknown tag ids",
                {"tag_ids": sorted(str(tag_id) for tag_id in missing)},
            )
        return tags

    async def _check_linked_user(self, ctx: TenantContext, user_id: Optional[UUID]) -> None:
        if user_id is not None and not await self.user_repo.get(ctx.tenant_id, user_id):
            raise NotFoundError("User", user_id)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def create_group(self, ctx: TenantContext, group_data: GroupCreate) -> GroupSummaryResponse:
        """Create a new top-level household or business group."""
        website, category = _business_fields(
            group_data.contact_type, group_data.website, group_data.business_category
        )
        tags = await self._resolve_tags(ctx, group_data.tag_ids)

        group = await self.contact_repo.create(
            ctx.tenant_id,
            contact_type=group_data.contact_type,
            company_name=group_data.group_name,
            notes=group_data.notes,
            website=website,
            business_category=category,
            is_tenant_household=False,
            parent_contact_id=None,
            visibility=ContactVisibilityLevel.TENANT_SHARED,
            created_by_user_id=ctx.user_id,
            tags=tags,
        )
        await self.session.commit()

        logger.info(
            "Contact group created",
            extra={
                "tenant_id": str(ctx.tenant_id),
                "group_id": str(group.id),
                "contact_type": group_data.contact_type.value,
            },
        )

        group = await self.contact_repo.get(ctx.tenant_id, group.id)
        if not group:
            raise ValueError("Failed to retrieve created group")
        return self._to_group_summary(group, member_count=0)

    async def get_group_by_id(self, ctx: TenantContext, group_id: UUID) -> GroupContactResponse:
        """Get a group with its members."""
        group = await self._get_group(ctx, group_id)
        return await self._to_group_response(ctx, group)

    async def update_group(
        self,
        ctx: TenantContext,
        group_id: UUID,
        group_data: GroupUpdate,
    ) -> GroupContactResponse:
        """Update a group's descriptive fields. Hierarchy flags are not editable here."""
        group = await self._get_group(ctx, group_id)

        if group.is_tenant_household and group_data.contact_type != ContactType.HOUSEHOLD:
            raise InvalidStateError("The tenant household must remain a Household group")

        website, category = _business_fields(
            group_data.contact_type, group_data.website, group_data.business_category
        )

        group.contact_type = group_data.contact_type
        group.company_name = group_data.group_name
        group.notes = group_data.notes
        group.website = website
        group.business_category = category
        group.is_active = group_data.is_active
        if group_data.tag_ids is not None:
            group.tags = await self._resolve_tags(ctx, group_data.tag_ids)

        await self.session.commit()

        group = await self.contact_repo.get(ctx.tenant_id, group_id)
        return await self._to_group_response(ctx, group)

    async def delete_group(self, ctx: TenantContext, group_id: UUID) -> None:
        """
        Delete a group, moving its members to the tenant household.

        Reassignment and deletion commit together or not at all.
        """
        group = await self._get_group(ctx, group_id)
        if group.is_tenant_household:
            raise InvalidStateError("Cannot delete the tenant household group")

        household = await self.contact_repo.get_tenant_household(ctx.tenant_id)
        if household is None:
            # Every tenant gets a household at provisioning time
            raise RuntimeError(f"Tenant {ctx.tenant_id} has no household to receive members")

        try:
            moved = await self.contact_repo.reassign_members(ctx.tenant_id, group_id, household.id)
            await self.contact_repo.delete(ctx.tenant_id, group_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Contact group deleted",
            extra={
                "tenant_id": str(ctx.tenant_id),
                "group_id": str(group_id),
                "reassigned_members": moved,
                "household_id": str(household.id),
            },
        )

    async def list_groups(self, ctx: TenantContext, contact_filter: ContactFilter) -> GroupListResponse:
        """List groups with live member counts and tag rollups."""
        rows, total = await self.contact_repo.search_groups(ctx.tenant_id, ctx.user_id, contact_filter)
        return GroupListResponse(
            items=[self._to_group_summary(group, member_count) for group, member_count in rows],
            total_count=total,
            page=contact_filter.page,
            page_size=contact_filter.page_size,
        )

    async def list_group_members(
        self,
        ctx: TenantContext,
        group_id: UUID,
        contact_filter: ContactFilter,
    ) -> ContactListResponse:
        """Search the members of one group."""
        await self._get_group(ctx, group_id)
        scoped = contact_filter.model_copy(update={"parent_contact_id": group_id})
        return await self.search_contacts(ctx, scoped)

    # ------------------------------------------------------------------
    # Tenant household
    # ------------------------------------------------------------------

    async def _rename_household(self, ctx: TenantContext, household: Contact, name: str) -> Contact:
        if household.company_name == name:
            return household
        previous = household.company_name
        household.company_name = name
        await self.session.commit()
        logger.info(
            "Tenant household renamed",
            extra={"tenant_id": str(ctx.tenant_id), "from": previous, "to": name},
        )
        return await self.contact_repo.get(ctx.tenant_id, household.id)

    async def _ensure_household(self, ctx: TenantContext, default_name: str) -> Contact:
        household = await self.contact_repo.get_tenant_household(ctx.tenant_id)
        if household:
            return await self._rename_household(ctx, household, default_name)

        try:
            household = await self.contact_repo.create(
                ctx.tenant_id,
                contact_type=ContactType.HOUSEHOLD,
                company_name=default_name,
                is_tenant_household=True,
                parent_contact_id=None,
                visibility=ContactVisibilityLevel.TENANT_SHARED,
                created_by_user_id=ctx.user_id,
            )
            await self.session.commit()
        except IntegrityError:
            # Lost the race on the unique household index; use the winner's row
            await self.session.rollback()
            household = await self.contact_repo.get_tenant_household(ctx.tenant_id)
            if household is None:
                raise
            logger.info(
                "Tenant household created concurrently",
                extra={"tenant_id": str(ctx.tenant_id), "household_id": str(household.id)},
            )
            return await self._rename_household(ctx, household, default_name)

        logger.info(
            "Tenant household created",
            extra={"tenant_id": str(ctx.tenant_id), "household_id": str(household.id)},
        )
        return await self.contact_repo.get(ctx.tenant_id, household.id)

    async def ensure_tenant_household(self, ctx: TenantContext, default_name: str) -> GroupContactResponse:
        """Get or create the tenant household, renaming it to ``default_name`` if needed."""
        household = await self._ensure_household(ctx, default_name)
        return await self._to_group_response(ctx, household)

    async def get_tenant_household(self, ctx: TenantContext) -> GroupContactResponse:
        """Get the tenant household without creating it."""
        household = await self.contact_repo.get_tenant_household(ctx.tenant_id)
        if household is None:
            raise NotFoundError("Tenant household")
        return await self._to_group_response(ctx, household)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def create_contact(self, ctx: TenantContext, contact_data: MemberCreate) -> MemberContactResponse:
        """Create a member contact inside a group (the tenant household by default)."""
        if contact_data.parent_contact_id is not None:
            parent = await self._get_target_group(ctx, contact_data.parent_contact_id)
        else:
            parent = await self.contact_repo.get_tenant_household(ctx.tenant_id)
            if parent is None:
                parent = await self._ensure_household(ctx, self.default_household_name)

        await self._check_linked_user(ctx, contact_data.linked_user_id)
        tags = await self._resolve_tags(ctx, contact_data.tag_ids)

        fields = contact_data.model_dump(exclude={"tag_ids", "parent_contact_id"})
        contact = await self.contact_repo.create(
            ctx.tenant_id,
            parent_contact_id=parent.id,
            created_by_user_id=ctx.user_id,
            tags=tags,
            **fields,
        )
        await self.session.commit()

        contact = await self.contact_repo.get(ctx.tenant_id, contact.id)
        if not contact:
            raise ValueError("Failed to retrieve created contact")
        return self._to_member_response(contact)

    async def get_contact(self, ctx: TenantContext, contact_id: UUID):
        """Get any contact as its group or member representation."""
        contact = await self._get_contact(ctx, contact_id)
        if contact.is_group:
            return await self._to_group_response(ctx, contact)
        return self._to_member_response(contact)

    async def update_contact(
        self,
        ctx: TenantContext,
        contact_id: UUID,
        contact_data: MemberUpdate,
    ) -> MemberContactResponse:
        """Update a member contact. Group moves go through move_contact_to_group."""
        contact = await self._get_contact(ctx, contact_id)
        if contact.is_group:
            raise InvalidStateError("Contact is a group; update it as a group")

        update_dict = contact_data.model_dump(exclude_unset=True)
        tag_ids = update_dict.pop("tag_ids", None)

        # Checked against the merged record: the update may carry only some names
        names = {field: update_dict.get(field, getattr(contact, field)) for field in _NAME_FIELDS}
        if not any(names.values()):
            raise ValidationError(
                "Either a name or company name is required",
                {"id": str(contact_id)},
            )

        if "linked_user_id" in update_dict:
            await self._check_linked_user(ctx, update_dict["linked_user_id"])
        if tag_ids is not None:
            contact.tags = await self._resolve_tags(ctx, tag_ids)

        for key, value in update_dict.items():
            if value is None and key in _NON_NULLABLE_MEMBER_FIELDS:
                continue
            setattr(contact, key, value)
        await self.session.commit()

        contact = await self.contact_repo.get(ctx.tenant_id, contact_id)
        return self._to_member_response(contact)

    async def delete_contact(self, ctx: TenantContext, contact_id: UUID) -> None:
        """Delete a member contact."""
        contact = await self._get_contact(ctx, contact_id)
        if contact.is_group:
            raise InvalidStateError("Contact is a group; delete it as a group")
        await self.contact_repo.delete(ctx.tenant_id, contact_id)
        await self.session.commit()

    async def move_contact_to_group(self, ctx: TenantContext, contact_id: UUID, target_group_id: UUID) -> None:
        """Attach a member contact to another group."""
        contact = await self._get_contact(ctx, contact_id)
        if contact.is_group:
            raise InvalidStateError("Cannot move a group contact; groups cannot be nested")

        target = await self._get_target_group(ctx, target_group_id)
        if contact.parent_contact_id == target.id:
            return

        previous = contact.parent_contact_id
        contact.parent_contact_id = target.id
        await self.session.commit()

        logger.info(
            "Contact moved to group",
            extra={
                "tenant_id": str(ctx.tenant_id),
                "contact_id": str(contact_id),
                "from_group_id": str(previous) if previous else None,
                "to_group_id": str(target.id),
            },
        )

    async def search_contacts(self, ctx: TenantContext, contact_filter: ContactFilter) -> ContactListResponse:
        """Search member contacts."""
        contacts, total = await self.contact_repo.search_members(ctx.tenant_id, ctx.user_id, contact_filter)
        return ContactListResponse(
            items=[self._to_member_response(contact) for contact in contacts],
            total_count=total,
            page=contact_filter.page,
            page_size=contact_filter.page_size,
        )

    # ------------------------------------------------------------------
    # Response shaping
    # ------------------------------------------------------------------

    def _to_group_summary(self, group: Contact, member_count: int) -> GroupSummaryResponse:
        """Convert group model to list row."""
        return GroupSummaryResponse(
            id=group.id,
            contact_type=group.contact_type,
            group_name=group.company_name or "",
            member_count=member_count,
            primary_address=_primary_address(group),
            is_tenant_household=group.is_tenant_household,
            is_active=group.is_active,
            tag_names=[tag.name for tag in group.tags],
            tag_colors=[tag.color for tag in group.tags],
            website=group.website,
            business_category=group.business_category,
            created_at=group.created_at,
        )

    async def _to_group_response(self, ctx: TenantContext, group: Contact) -> GroupContactResponse:
        """
        Convert group model to its full representation.

        ``members`` holds what the caller may see; ``member_count`` counts every
        member, matching the group listing.
        """
        members = await self.contact_repo.list_members(ctx.tenant_id, group.id, ctx.user_id)
        member_count = await self.contact_repo.count_members(ctx.tenant_id, group.id)
        return GroupContactResponse(
            id=group.id,
            contact_type=group.contact_type,
            group_name=group.company_name or "",
            notes=group.notes,
            website=group.website,
            business_category=group.business_category,
            is_tenant_household=group.is_tenant_household,
            is_active=group.is_active,
            visibility=group.visibility,
            member_count=member_count,
            members=[MemberSummary.model_validate(member) for member in members],
            tags=[TagSummary.model_validate(tag) for tag in group.tags],
            primary_address=_primary_address(group),
            created_by_user_id=group.created_by_user_id,
            created_at=group.created_at,
            updated_at=group.updated_at,
        )

    def _to_member_response(self, contact: Contact) -> MemberContactResponse:
        """Convert member model to response schema."""
        response = MemberContactResponse.model_validate(contact, from_attributes=True)
        parent = contact.parent_contact
        if parent is not None:
            response = response.model_copy(update={"parent_group_name": parent.company_name})
        return response
