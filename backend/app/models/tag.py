"""
Contact tag model.
"""

from sqlalchemy import Column, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid

from app.db.base import Base


class ContactTag(Base):
    """Tenant-defined label that can be attached to any contact."""

    __tablename__ = "contact_tags"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_contact_tags_tenant_name"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=True)
