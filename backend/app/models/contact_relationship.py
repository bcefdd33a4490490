"""
Directed relationships between contacts (spouse, parent, employer, ...).
"""

from sqlalchemy import Column, ForeignKey, Enum as SQLEnum, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
import enum

from app.db.base import Base, enum_values


class RelationshipType(str, enum.Enum):
    """Relationship type enumeration, read as "target is <type> of source"."""
    SPOUSE = "Spouse"
    PARTNER = "Partner"
    PARENT = "Parent"
    CHILD = "Child"
    SIBLING = "Sibling"
    GRANDPARENT = "Grandparent"
    GRANDCHILD = "Grandchild"
    RELATIVE = "Relative"
    FRIEND = "Friend"
    COLLEAGUE = "Colleague"
    EMPLOYER = "Employer"
    EMPLOYEE = "Employee"
    OTHER = "Other"


class ContactRelationship(Base):
    """Relationship from source contact to target contact."""

    __tablename__ = "contact_relationships"
    __table_args__ = (
        UniqueConstraint(
            "source_contact_id",
            "target_contact_id",
            "relationship_type",
            name="uq_contact_relationships_pair_type",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    source_contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    target_contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    relationship_type = Column(
        SQLEnum(RelationshipType, values_callable=enum_values, name="relationship_type"),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
