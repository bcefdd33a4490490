"""
Association tables for many-to-many relationships.
"""

from sqlalchemy import Table, Column, ForeignKey
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base

# Contact ↔ ContactTag (many-to-many)
contact_tag_links = Table(
    "contact_tag_links",
    Base.metadata,
    Column("contact_id", UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", UUID(as_uuid=True), ForeignKey("contact_tags.id", ondelete="CASCADE"), primary_key=True),
)
