"""
Base repository with tenant-scoped CRUD.

Every query is filtered by the owning tenant; a row from another tenant is
indistinguishable from a missing one.
"""

from typing import Generic, Optional, Type, TypeVar
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select

from app.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository for models carrying a ``tenant_id`` column."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _scoped(self, tenant_id: UUID):
        """Select statement restricted to one tenant."""
        return select(self.model).where(self.model.tenant_id == tenant_id)

    async def create(self, tenant_id: UUID, **kwargs) -> ModelType:
        """
        Add a record owned by ``tenant_id`` and flush it.

        The caller commits. Server-side defaults are not loaded until the row
        is read back.
        """
        instance = self.model(tenant_id=tenant_id, **kwargs)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def get(self, tenant_id: UUID, id: UUID) -> Optional[ModelType]:
        """Get a record by ID within a tenant, or None."""
        result = await self.session.execute(
            self._scoped(tenant_id).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def delete(self, tenant_id: UUID, id: UUID) -> bool:
        """
        Delete a record with a single DELETE statement.

        Returns:
            True if a row was removed
        """
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.tenant_id == tenant_id)
            .where(self.model.id == id)
        )
        await self.session.flush()
        return result.rowcount > 0
