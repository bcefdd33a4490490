"""
Health repository.
Probes the database connection and the contacts schema.
"""

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact


class HealthRepository:
    """Repository for health check operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check_database(self) -> bool:
        """True if the database answers a trivial query."""
        try:
            result = await self.session.execute(text("SELECT 1"))
            return result.scalar() == 1
        except SQLAlchemyError:
            return False

    async def check_contacts_table(self) -> bool:
        """
        True if the contacts table is queryable.

        Catches a database that is reachable but not yet migrated.
        """
        try:
            await self.session.execute(select(Contact.id).limit(1))
            return True
        except SQLAlchemyError:
            return False
