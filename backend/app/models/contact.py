"""
Contact model for households, businesses and the people in them.

A single table holds both group rows (contact_type set) and member rows
(parent_contact_id set).
"""

from sqlalchemy import (
    Column,
    String,
    ForeignKey,
    Enum as SQLEnum,
    Boolean,
    DateTime,
    Integer,
    Index,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

from app.db.base import Base, enum_values
from app.models.association_tables import contact_tag_links


class ContactType(str, enum.Enum):
    """Group contact type enumeration."""
    HOUSEHOLD = "Household"
    BUSINESS = "Business"


class ContactVisibilityLevel(str, enum.Enum):
    """Who within the tenant can see a contact."""
    TENANT_SHARED = "TenantShared"
    PRIVATE = "Private"


class Gender(str, enum.Enum):
    """Gender enumeration."""
    UNKNOWN = "Unknown"
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class DatePrecision(str, enum.Enum):
    """How much of a partial date is known."""
    UNKNOWN = "Unknown"
    YEAR = "Year"
    YEAR_MONTH = "YearMonth"
    FULL = "Full"


# Shared by the birth and death precision columns
_date_precision_type = SQLEnum(DatePrecision, values_callable=enum_values, name="contact_date_precision")


class Contact(Base):
    """Contact model for individual people and household/business groups."""

    __tablename__ = "contacts"
    __table_args__ = (
        Index("ix_contacts_tenant_name", "tenant_id", "first_name", "last_name"),
        Index("ix_contacts_tenant_company", "tenant_id", "company_name"),
        Index("ix_contacts_tenant_linked_user", "tenant_id", "linked_user_id"),
        Index("ix_contacts_tenant_visibility", "tenant_id", "visibility"),
        Index("ix_contacts_tenant_active", "tenant_id", "is_active"),
        Index("ix_contacts_tenant_parent", "tenant_id", "parent_contact_id"),
        Index("ix_contacts_tenant_contact_type", "tenant_id", "contact_type"),
        # At most one household root per tenant
        Index(
            "ux_contacts_tenant_household",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_tenant_household"),
            sqlite_where=text("is_tenant_household = 1"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    # Person fields
    first_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    preferred_name = Column(String(100), nullable=True)
    title = Column(String(100), nullable=True)
    gender = Column(
        SQLEnum(Gender, values_callable=enum_values, name="contact_gender"),
        nullable=False,
        default=Gender.UNKNOWN,
    )
    birth_year = Column(Integer, nullable=True)
    birth_month = Column(Integer, nullable=True)
    birth_day = Column(Integer, nullable=True)
    birth_date_precision = Column(
        _date_precision_type,
        nullable=False,
        default=DatePrecision.UNKNOWN,
    )
    death_year = Column(Integer, nullable=True)
    death_month = Column(Integer, nullable=True)
    death_day = Column(Integer, nullable=True)
    death_date_precision = Column(
        _date_precision_type,
        nullable=False,
        default=DatePrecision.UNKNOWN,
    )
    notes = Column(String(5000), nullable=True)

    # Group fields; company_name doubles as the group name
    company_name = Column(String(200), nullable=True)
    contact_type = Column(
        SQLEnum(ContactType, values_callable=enum_values, name="contact_type"),
        nullable=True,
    )
    is_tenant_household = Column(Boolean, default=False, nullable=False)
    website = Column(String(500), nullable=True)
    business_category = Column(String(100), nullable=True)
    uses_group_address = Column(Boolean, default=False, nullable=False)

    # Hierarchy: members point at their group
    parent_contact_id = Column(
        UUID(as_uuid=True),
        ForeignKey("contacts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    visibility = Column(
        SQLEnum(ContactVisibilityLevel, values_callable=enum_values, name="contact_visibility"),
        nullable=False,
        default=ContactVisibilityLevel.TENANT_SHARED,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    linked_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    parent_contact = relationship("Contact", remote_side=[id], foreign_keys=[parent_contact_id])
    tags = relationship("ContactTag", secondary=contact_tag_links, order_by="ContactTag.name")
    addresses = relationship(
        "ContactAddress",
        back_populates="contact",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    linked_user = relationship("User", foreign_keys=[linked_user_id])

    @property
    def is_group(self) -> bool:
        return self.contact_type is not None

    @property
    def group_name(self):
        return self.company_name

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)

    @property
    def display_name(self) -> str:
        """Name shown in lists: group name, preferred name, full name, then company."""
        if self.is_group:
            return self.company_name or ""
        if self.preferred_name:
            return " ".join(part for part in [self.preferred_name, self.last_name] if part)
        return self.full_name or self.company_name or ""
