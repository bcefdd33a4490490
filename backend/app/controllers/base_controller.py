"""
Base controller class.
"""

from abc import ABC
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession


class BaseController(ABC):
    """
    Base controller class for all controllers.

    Contact controllers are built per request around that request's session.
    Process-wide controllers (health) come from the DI container and have none.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session
