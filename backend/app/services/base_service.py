"""
Base service class.
Services contain business logic, coordinate repositories and own the
commit/rollback of the session they are given.
"""

from abc import ABC

from sqlalchemy.ext.asyncio import AsyncSession


class BaseService(ABC):
    """Base service class for all services."""

    session: AsyncSession
