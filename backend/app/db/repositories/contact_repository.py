"""
Contact repository for database operations.

Holds the tenant-scoped queries for the group/member hierarchy: household
lookup, bulk member reassignment, and filtered listings with live member
counts.
"""

from typing import Optional, List, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_, exists, and_, case
from sqlalchemy.orm import aliased, selectinload

from app.db.repositories.base_repository import BaseRepository
from app.models.address import ContactAddress
from app.models.contact import Contact, ContactVisibilityLevel
from app.models.contact_relationship import ContactRelationship
from app.models.tag import ContactTag
from app.schemas.contact import ContactFilter


def _sort_key(value: Optional[str]) -> str:
    """Normalize "GroupName", "group_name" and "groupname" to one key."""
    return (value or "").replace("_", "").replace("-", "").lower()


def _member_display_name():
    """SQL twin of ``Contact.display_name`` for member rows."""
    # NULL || ' ' is NULL, so absent parts contribute nothing
    full_name = func.trim(
        func.coalesce(Contact.first_name + " ", "")
        + func.coalesce(Contact.middle_name + " ", "")
        + func.coalesce(Contact.last_name, "")
    )
    preferred = Contact.preferred_name + func.coalesce(" " + Contact.last_name, "")
    return case(
        (Contact.preferred_name.is_not(None), preferred),
        else_=func.coalesce(func.nullif(full_name, ""), Contact.company_name, ""),
    )


class ContactRepository(BaseRepository[Contact]):
    """Repository for contact operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Contact, session)

    def _base_query(self, tenant_id: UUID):
        """Tenant-scoped query with tags, addresses and parent group loaded."""
        return (
            self._scoped(tenant_id)
            .options(
                selectinload(Contact.tags),
                selectinload(Contact.addresses).selectinload(ContactAddress.address),
                selectinload(Contact.parent_contact),
            )
        )

    @staticmethod
    def _member_count():
        """Correlated live count of members pointing at the outer Contact row."""
        member = aliased(Contact)
        return (
            select(func.count(member.id))
            .where(member.parent_contact_id == Contact.id)
            .where(member.tenant_id == Contact.tenant_id)
            .correlate(Contact)
            .scalar_subquery()
        )

    async def get(self, tenant_id: UUID, id: UUID) -> Optional[Contact]:
        """Get contact by ID with relationships freshly loaded."""
        query = (
            self._base_query(tenant_id)
            .where(Contact.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_tenant_household(self, tenant_id: UUID) -> Optional[Contact]:
        """Get the tenant's root household group, if provisioned."""
        query = (
            self._base_query(tenant_id)
            .where(Contact.is_tenant_household.is_(True))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def count_members(self, tenant_id: UUID, group_id: UUID) -> int:
        """Count contacts whose parent is ``group_id``."""
        result = await self.session.execute(
            select(func.count(Contact.id))
            .where(Contact.tenant_id == tenant_id)
            .where(Contact.parent_contact_id == group_id)
        )
        return result.scalar() or 0

    async def list_members(self, tenant_id: UUID, group_id: UUID, user_id: Optional[UUID]) -> List[Contact]:
        """List the members of a group that ``user_id`` may see, ordered by name."""
        query = (
            self._scoped(tenant_id)
            .where(Contact.parent_contact_id == group_id)
            .where(self._visible_to(user_id))
            .order_by(Contact.last_name, Contact.first_name, Contact.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def reassign_members(self, tenant_id: UUID, from_group_id: UUID, to_group_id: UUID) -> int:
        """
        Move every member of one group to another in a single UPDATE.

        Returns:
            Number of reassigned members
        """
        result = await self.session.execute(
            update(Contact)
            .where(Contact.tenant_id == tenant_id)
            .where(Contact.parent_contact_id == from_group_id)
            .values(parent_contact_id=to_group_id)
        )
        await self.session.flush()
        return result.rowcount

    # ------------------------------------------------------------------
    # Filtered listings
    # ------------------------------------------------------------------

    @staticmethod
    def _visible_to(user_id: Optional[UUID]):
        """Private contacts are only listed for the user who created them."""
        visible = Contact.visibility == ContactVisibilityLevel.TENANT_SHARED
        if user_id is not None:
            visible = or_(visible, Contact.created_by_user_id == user_id)
        return visible

    def _filter_conditions(
        self,
        tenant_id: UUID,
        user_id: Optional[UUID],
        contact_filter: ContactFilter,
        groups: bool,
    ) -> list:
        conditions = [
            Contact.tenant_id == tenant_id,
            Contact.contact_type.is_not(None) if groups else Contact.contact_type.is_(None),
            self._visible_to(user_id),
        ]

        term = (contact_filter.search_term or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(
                or_(
                    Contact.first_name.ilike(pattern),
                    Contact.middle_name.ilike(pattern),
                    Contact.last_name.ilike(pattern),
                    Contact.preferred_name.ilike(pattern),
                    Contact.company_name.ilike(pattern),
                )
            )

        if contact_filter.visibility is not None:
            conditions.append(Contact.visibility == contact_filter.visibility)
        if contact_filter.is_active is not None:
            conditions.append(Contact.is_active.is_(contact_filter.is_active))
        if contact_filter.is_user_linked is not None:
            if contact_filter.is_user_linked:
                conditions.append(Contact.linked_user_id.is_not(None))
            else:
                conditions.append(Contact.linked_user_id.is_(None))
        if contact_filter.tag_ids:
            conditions.append(Contact.tags.any(ContactTag.id.in_(contact_filter.tag_ids)))

        if groups:
            if contact_filter.contact_type is not None:
                conditions.append(Contact.contact_type == contact_filter.contact_type)
        else:
            if contact_filter.parent_contact_id is not None:
                conditions.append(Contact.parent_contact_id == contact_filter.parent_contact_id)
            if contact_filter.related_to_contact_id is not None or contact_filter.relationship_type is not None:
                link = [
                    ContactRelationship.tenant_id == tenant_id,
                    ContactRelationship.target_contact_id == Contact.id,
                ]
                if contact_filter.related_to_contact_id is not None:
                    link.append(ContactRelationship.source_contact_id == contact_filter.related_to_contact_id)
                if contact_filter.relationship_type is not None:
                    link.append(ContactRelationship.relationship_type == contact_filter.relationship_type)
                conditions.append(exists().where(and_(*link)))

        return conditions

    async def _count(self, conditions: list) -> int:
        result = await self.session.execute(select(func.count(Contact.id)).where(*conditions))
        return result.scalar() or 0

    async def search_groups(
        self,
        tenant_id: UUID,
        user_id: Optional[UUID],
        contact_filter: ContactFilter,
    ) -> Tuple[List[Tuple[Contact, int]], int]:
        """
        List groups matching the filter.

        Returns:
            ([(group, member_count), ...], total match count before paging)
        """
        conditions = self._filter_conditions(tenant_id, user_id, contact_filter, groups=True)
        total = await self._count(conditions)

        member_count = self._member_count().label("member_count")
        sort_columns = {
            "groupname": Contact.company_name,
            "createdat": Contact.created_at,
            "updatedat": Contact.updated_at,
            "membercount": member_count,
        }
        # Group rows have no last name, so the default is the group name
        sort_column = sort_columns.get(_sort_key(contact_filter.sort_by), Contact.company_name)
        order = sort_column.desc() if contact_filter.sort_descending else sort_column.asc()

        query = (
            select(Contact, member_count)
            .where(*conditions)
            .options(
                selectinload(Contact.tags),
                selectinload(Contact.addresses).selectinload(ContactAddress.address),
            )
            .order_by(order, Contact.id)
            .offset(contact_filter.offset)
            .limit(contact_filter.page_size)
        )
        result = await self.session.execute(query)
        rows = [(row[0], row[1] or 0) for row in result.all()]
        return rows, total

    async def search_members(
        self,
        tenant_id: UUID,
        user_id: Optional[UUID],
        contact_filter: ContactFilter,
    ) -> Tuple[List[Contact], int]:
        """
        List member contacts matching the filter.

        Returns:
            (contacts, total match count before paging)
        """
        conditions = self._filter_conditions(tenant_id, user_id, contact_filter, groups=False)
        total = await self._count(conditions)

        key = _sort_key(contact_filter.sort_by)
        sort_columns = {
            "lastname": [Contact.last_name, Contact.first_name],
            "firstname": [Contact.first_name, Contact.last_name],
            "displayname": [_member_display_name()],
            "companyname": [Contact.company_name],
            "createdat": [Contact.created_at],
            "updatedat": [Contact.updated_at],
        }
        columns = sort_columns.get(key, sort_columns["lastname"])
        order = [c.desc() if contact_filter.sort_descending else c.asc() for c in columns]

        query = (
            self._base_query(tenant_id)
            .where(*conditions)
            .order_by(*order, Contact.id)
            .offset(contact_filter.offset)
            .limit(contact_filter.page_size)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total
