"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from app.models.association_tables import contact_tag_links
from app.models.user import User
from app.models.tag import ContactTag
from app.models.address import Address, AddressTag, ContactAddress
from app.models.contact import (
    Contact,
    ContactType,
    ContactVisibilityLevel,
    DatePrecision,
    Gender,
)
from app.models.contact_relationship import ContactRelationship, RelationshipType

__all__ = [
    "User",
    "ContactTag",
    "Address",
    "AddressTag",
    "ContactAddress",
    "Contact",
    "ContactType",
    "ContactVisibilityLevel",
    "DatePrecision",
    "Gender",
    "ContactRelationship",
    "RelationshipType",
    "contact_tag_links",
]
