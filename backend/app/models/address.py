"""
Address models. Contacts link to shared address rows through ContactAddress.
"""

from sqlalchemy import Column, String, ForeignKey, Enum as SQLEnum, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

from app.db.base import Base, enum_values


class AddressTag(str, enum.Enum):
    """Address tag enumeration."""
    HOME = "Home"
    WORK = "Work"
    OTHER = "Other"


class Address(Base):
    """Postal address."""

    __tablename__ = "addresses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state_province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    @property
    def formatted(self) -> str:
        locality = " ".join(part for part in [self.state_province, self.postal_code] if part)
        parts = [self.address_line1, self.address_line2, self.city, locality, self.country]
        return ", ".join(part for part in parts if part)


class ContactAddress(Base):
    """Link between a contact and one of its addresses."""

    __tablename__ = "contact_addresses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    address_id = Column(UUID(as_uuid=True), ForeignKey("addresses.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(
        SQLEnum(AddressTag, values_callable=enum_values, name="address_tag"),
        nullable=False,
        default=AddressTag.HOME,
    )
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    contact = relationship("Contact", back_populates="addresses")
    address = relationship("Address", lazy="joined")
