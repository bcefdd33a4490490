"""
Contact Pydantic schemas for request/response validation.

Groups (households, businesses) and members (people) share one table but are
exposed as separate shapes; ``ContactResponse`` is the tagged union of both.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from app.core.config import settings
from app.models.contact import ContactType, ContactVisibilityLevel, DatePrecision, Gender
from app.models.contact_relationship import RelationshipType


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_url(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Website must be a valid URL")
    return value


class ContactFilter(BaseModel):
    """Filter, sort and paging parameters shared by group and member listings."""
    search_term: Optional[str] = Field(None, max_length=200)
    visibility: Optional[ContactVisibilityLevel] = None
    tag_ids: Optional[List[UUID]] = None
    is_active: Optional[bool] = None
    is_user_linked: Optional[bool] = None
    contact_type: Optional[ContactType] = None
    parent_contact_id: Optional[UUID] = None
    related_to_contact_id: Optional[UUID] = None
    relationship_type: Optional[RelationshipType] = None
    sort_by: Optional[str] = None
    sort_descending: bool = False
    page: int = Field(1, ge=1)
    page_size: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

class GroupCreate(BaseModel):
    """Schema for creating a household or business group."""
    contact_type: ContactType
    group_name: str = Field(..., max_length=200)
    notes: Optional[str] = Field(None, max_length=5000)
    website: Optional[str] = Field(None, max_length=500)
    business_category: Optional[str] = Field(None, max_length=100)
    tag_ids: Optional[List[UUID]] = None

    @field_validator("group_name")
    @classmethod
    def group_name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Group name is required")
        return value

    @field_validator("website")
    @classmethod
    def website_for_business_only(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        value = _check_url(value)
        if value is not None and info.data.get("contact_type") == ContactType.HOUSEHOLD:
            raise ValueError("Website is only valid for Business groups")
        return value

    @field_validator("business_category")
    @classmethod
    def category_for_business_only(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        value = _blank_to_none(value)
        if value is not None and info.data.get("contact_type") == ContactType.HOUSEHOLD:
            raise ValueError("Business category is only valid for Business groups")
        return value


class GroupUpdate(GroupCreate):
    """Schema for updating a group. ``tag_ids`` of None leaves tags unchanged."""
    is_active: bool = True


class HouseholdEnsureRequest(BaseModel):
    """Schema for creating or renaming the tenant household."""
    name: str = Field(..., max_length=200)

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Household name is required")
        return value


class TagSummary(BaseModel):
    """Tag name and color attached to a contact."""
    id: UUID
    name: str
    color: Optional[str] = None

    class Config:
        from_attributes = True


class MemberSummary(BaseModel):
    """Compact member row shown inside a group."""
    id: UUID
    display_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool = True
    linked_user_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class GroupSummaryResponse(BaseModel):
    """Group row in a listing, with live member count and tag rollup."""
    id: UUID
    contact_type: ContactType
    group_name: str
    member_count: int = 0
    primary_address: Optional[str] = None
    is_tenant_household: bool = False
    is_active: bool = True
    tag_names: List[str] = []
    tag_colors: List[Optional[str]] = []
    website: Optional[str] = None
    business_category: Optional[str] = None
    created_at: datetime


class GroupListResponse(BaseModel):
    """Schema for group list response."""
    items: List[GroupSummaryResponse]
    total_count: int
    page: int
    page_size: int


class GroupContactResponse(BaseModel):
    """Full representation of a group contact."""
    kind: Literal["group"] = "group"
    id: UUID
    contact_type: ContactType
    group_name: str
    notes: Optional[str] = None
    website: Optional[str] = None
    business_category: Optional[str] = None
    is_tenant_household: bool = False
    is_active: bool = True
    visibility: ContactVisibilityLevel
    member_count: int = 0
    members: List[MemberSummary] = []
    tags: List[TagSummary] = []
    primary_address: Optional[str] = None
    created_by_user_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_group(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class _PersonFields(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    preferred_name: Optional[str] = Field(None, max_length=100)
    title: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)
    birth_year: Optional[int] = Field(None, ge=1, le=9999)
    birth_month: Optional[int] = Field(None, ge=1, le=12)
    birth_day: Optional[int] = Field(None, ge=1, le=31)
    death_year: Optional[int] = Field(None, ge=1, le=9999)
    death_month: Optional[int] = Field(None, ge=1, le=12)
    death_day: Optional[int] = Field(None, ge=1, le=31)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator(
        "first_name", "middle_name", "last_name", "preferred_name", "title", "company_name"
    )
    @classmethod
    def strip_names(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


class MemberCreate(_PersonFields):
    """Schema for creating a member contact."""
    gender: Gender = Gender.UNKNOWN
    birth_date_precision: DatePrecision = DatePrecision.UNKNOWN
    death_date_precision: DatePrecision = DatePrecision.UNKNOWN
    visibility: ContactVisibilityLevel = ContactVisibilityLevel.TENANT_SHARED
    parent_contact_id: Optional[UUID] = None
    linked_user_id: Optional[UUID] = None
    uses_group_address: bool = False
    tag_ids: Optional[List[UUID]] = None

    @model_validator(mode="after")
    def name_or_company_required(self) -> "MemberCreate":
        if not (self.first_name or self.last_name or self.preferred_name or self.company_name):
            raise ValueError("Either a name or company name is required")
        return self


class MemberUpdate(_PersonFields):
    """Schema for updating a member (all fields optional)."""
    gender: Optional[Gender] = None
    birth_date_precision: Optional[DatePrecision] = None
    death_date_precision: Optional[DatePrecision] = None
    visibility: Optional[ContactVisibilityLevel] = None
    linked_user_id: Optional[UUID] = None
    uses_group_address: Optional[bool] = None
    is_active: Optional[bool] = None
    tag_ids: Optional[List[UUID]] = None


class MemberContactResponse(BaseModel):
    """Full representation of a member contact."""
    kind: Literal["member"] = "member"
    id: UUID
    parent_contact_id: Optional[UUID] = None
    parent_group_name: Optional[str] = None
    display_name: str
    full_name: str
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_name: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    birth_year: Optional[int] = None
    birth_month: Optional[int] = None
    birth_day: Optional[int] = None
    birth_date_precision: DatePrecision = DatePrecision.UNKNOWN
    death_year: Optional[int] = None
    death_month: Optional[int] = None
    death_day: Optional[int] = None
    death_date_precision: DatePrecision = DatePrecision.UNKNOWN
    notes: Optional[str] = None
    visibility: ContactVisibilityLevel
    is_active: bool = True
    linked_user_id: Optional[UUID] = None
    uses_group_address: bool = False
    tags: List[TagSummary] = []
    created_by_user_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_group(self) -> bool:
        return False


class ContactListResponse(BaseModel):
    """Schema for member search response."""
    items: List[MemberContactResponse]
    total_count: int
    page: int
    page_size: int


ContactResponse = Annotated[
    Union[GroupContactResponse, MemberContactResponse],
    Field(discriminator="kind"),
]
