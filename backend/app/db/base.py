"""
SQLAlchemy declarative base for models.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def enum_values(enum_cls) -> list:
    """Persist enums by value ("Household") rather than member name ("HOUSEHOLD")."""
    return [member.value for member in enum_cls]
