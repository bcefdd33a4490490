"""
Contact tag repository for database operations.
"""

from typing import Iterable, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base_repository import BaseRepository
from app.models.tag import ContactTag


class TagRepository(BaseRepository[ContactTag]):
    """Repository for contact tag operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactTag, session)

    async def list_by_ids(self, tenant_id: UUID, tag_ids: Iterable[UUID]) -> List[ContactTag]:
        """Fetch the tenant's tags among ``tag_ids``."""
        ids = set(tag_ids)
        if not ids:
            return []
        query = self._scoped(tenant_id).where(ContactTag.id.in_(ids)).order_by(ContactTag.name)
        result = await self.session.execute(query)
        return list(result.scalars().all())
