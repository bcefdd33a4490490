"""
Member contact service tests: creation inside groups, search and updates.
"""

import uuid

import pytest
from sqlalchemy import func, select

from app.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.association_tables import contact_tag_links
from app.models.contact import ContactType, ContactVisibilityLevel, DatePrecision, Gender
from app.models.contact_relationship import ContactRelationship, RelationshipType
from app.models.tag import ContactTag
from app.models.user import User
from app.schemas.contact import ContactFilter, GroupCreate, MemberCreate, MemberUpdate
from app.schemas.tenant import TenantContext


async def _tag(session, ctx, name, color=None):
    tag = ContactTag(tenant_id=ctx.tenant_id, name=name, color=color)
    session.add(tag)
    await session.commit()
    return tag


@pytest.mark.asyncio
async def test_create_contact_defaults_to_tenant_household(contact_service, ctx):
    household = await contact_service.ensure_tenant_household(ctx, "Smith Household")

    contact = await contact_service.create_contact(
        ctx, MemberCreate(first_name="Jane", last_name="Smith")
    )

    assert contact.kind == "member"
    assert contact.parent_contact_id == household.id
    assert contact.parent_group_name == "Smith Household"
    assert contact.full_name == "Jane Smith"
    assert contact.created_by_user_id == ctx.user_id
    assert contact.visibility == ContactVisibilityLevel.TENANT_SHARED


@pytest.mark.asyncio
async def test_create_contact_provisions_missing_household(contact_service, ctx):
    contact = await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    household = await contact_service.get_tenant_household(ctx)
    assert household.group_name == "Household"
    assert contact.parent_contact_id == household.id


@pytest.mark.asyncio
async def test_create_contact_does_not_rename_household(contact_service, ctx):
    await contact_service.ensure_tenant_household(ctx, "Smith Household")

    await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    assert (await contact_service.get_tenant_household(ctx)).group_name == "Smith Household"


@pytest.mark.asyncio
async def test_create_contact_in_explicit_group(contact_service, ctx):
    business = await contact_service.create_group(
        ctx, GroupCreate(contact_type=ContactType.BUSINESS, group_name="Acme Corp")
    )

    contact = await contact_service.create_contact(
        ctx,
        MemberCreate(
            first_name="Ann",
            last_name="Baker",
            title="CFO",
            gender=Gender.FEMALE,
            birth_year=1980,
            birth_month=4,
            birth_date_precision=DatePrecision.YEAR_MONTH,
            parent_contact_id=business.id,
        ),
    )

    assert contact.parent_contact_id == business.id
    assert contact.title == "CFO"
    assert contact.gender == Gender.FEMALE
    assert contact.birth_date_precision == DatePrecision.YEAR_MONTH


@pytest.mark.asyncio
async def test_create_contact_under_member_is_rejected(contact_service, ctx):
    parent = await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    with pytest.raises(InvalidStateError):
        await contact_service.create_contact(
            ctx, MemberCreate(first_name="Tim", parent_contact_id=parent.id)
        )


@pytest.mark.asyncio
async def test_create_contact_in_missing_group(contact_service, ctx):
    with pytest.raises(NotFoundError):
        await contact_service.create_contact(
            ctx, MemberCreate(first_name="Tim", parent_contact_id=uuid.uuid4())
        )


@pytest.mark.asyncio
async def test_create_contact_with_tags(contact_service, ctx, test_db_session):
    vip = await _tag(test_db_session, ctx, "VIP", "#ff0000")
    donor = await _tag(test_db_session, ctx, "Donor")

    contact = await contact_service.create_contact(
        ctx, MemberCreate(first_name="Jane", tag_ids=[vip.id, donor.id])
    )

    assert [t.name for t in contact.tags] == ["Donor", "VIP"]


@pytest.mark.asyncio
async def test_create_contact_with_unknown_tag(contact_service, ctx):
    with pytest.raises(ValidationError):
        await contact_service.create_contact(
            ctx, MemberCreate(first_name="Jane", tag_ids=[uuid.uuid4()])
        )


@pytest.mark.asyncio
async def test_tags_from_other_tenant_are_unknown(contact_service, ctx, other_ctx, test_db_session):
    foreign = await _tag(test_db_session, other_ctx, "VIP")

    with pytest.raises(ValidationError):
        await contact_service.create_contact(
            ctx, MemberCreate(first_name="Jane", tag_ids=[foreign.id])
        )


@pytest.mark.asyncio
async def test_create_contact_linked_user(contact_service, ctx, test_db_session):
    user = User(tenant_id=ctx.tenant_id, email="jane@example.com", first_name="Jane", last_name="Smith")
    test_db_session.add(user)
    await test_db_session.commit()

    contact = await contact_service.create_contact(
        ctx, MemberCreate(first_name="Jane", linked_user_id=user.id)
    )

    assert contact.linked_user_id == user.id

    with pytest.raises(NotFoundError):
        await contact_service.create_contact(
            ctx, MemberCreate(first_name="Ghost", linked_user_id=uuid.uuid4())
        )


@pytest.mark.asyncio
async def test_group_tags_roll_up_in_listing(contact_service, ctx, test_db_session):
    vip = await _tag(test_db_session, ctx, "VIP", "#ff0000")

    await contact_service.create_group(
        ctx,
        GroupCreate(contact_type=ContactType.BUSINESS, group_name="Acme Corp", tag_ids=[vip.id]),
    )

    result = await contact_service.list_groups(ctx, ContactFilter())
    assert result.items[0].tag_names == ["VIP"]
    assert result.items[0].tag_colors == ["#ff0000"]


@pytest.mark.asyncio
async def test_search_contacts_excludes_groups(contact_service, ctx):
    await contact_service.ensure_tenant_household(ctx, "Smith Household")
    await contact_service.create_contact(ctx, MemberCreate(first_name="Jane", last_name="Smith"))

    result = await contact_service.search_contacts(ctx, ContactFilter(search_term="smith"))

    assert result.total_count == 1
    assert result.items[0].first_name == "Jane"


@pytest.mark.asyncio
async def test_search_contacts_sort_and_paging(contact_service, ctx):
    for first, last in [("Zoe", "Adams"), ("Amy", "Brown"), ("Max", "Clark")]:
        await contact_service.create_contact(ctx, MemberCreate(first_name=first, last_name=last))

    by_last = await contact_service.search_contacts(ctx, ContactFilter())
    assert [c.last_name for c in by_last.items] == ["Adams", "Brown", "Clark"]

    by_first_desc = await contact_service.search_contacts(
        ctx, ContactFilter(sort_by="first_name", sort_descending=True)
    )
    assert [c.first_name for c in by_first_desc.items] == ["Zoe", "Max", "Amy"]

    second_page = await contact_service.search_contacts(ctx, ContactFilter(page=2, page_size=2))
    assert second_page.total_count == 3
    assert [c.last_name for c in second_page.items] == ["Clark"]


@pytest.mark.asyncio
async def test_search_contacts_sort_by_display_name(contact_service, ctx):
    await contact_service.create_contact(ctx, MemberCreate(preferred_name="Cy", first_name="Al", last_name="Adams"))
    await contact_service.create_contact(ctx, MemberCreate(last_name="Baker"))
    await contact_service.create_contact(ctx, MemberCreate(first_name="Ann"))
    await contact_service.create_contact(ctx, MemberCreate(preferred_name="Cy", last_name="Zimmer"))

    result = await contact_service.search_contacts(ctx, ContactFilter(sort_by="DisplayName"))

    assert [c.display_name for c in result.items] == ["Ann", "Baker", "Cy Adams", "Cy Zimmer"]


@pytest.mark.asyncio
async def test_search_contacts_unknown_sort_falls_back(contact_service, ctx):
    for first, last in [("Zoe", "Brown"), ("Amy", "Adams")]:
        await contact_service.create_contact(ctx, MemberCreate(first_name=first, last_name=last))

    result = await contact_service.search_contacts(ctx, ContactFilter(sort_by="shoe_size"))

    assert [c.last_name for c in result.items] == ["Adams", "Brown"]


@pytest.mark.asyncio
async def test_search_contacts_by_tag(contact_service, ctx, test_db_session):
    vip = await _tag(test_db_session, ctx, "VIP")
    await contact_service.create_contact(ctx, MemberCreate(first_name="Jane", tag_ids=[vip.id]))
    await contact_service.create_contact(ctx, MemberCreate(first_name="John"))

    result = await contact_service.search_contacts(ctx, ContactFilter(tag_ids=[vip.id]))

    assert [c.first_name for c in result.items] == ["Jane"]


@pytest.mark.asyncio
async def test_search_contacts_by_group(contact_service, ctx):
    business = await contact_service.create_group(
        ctx, GroupCreate(contact_type=ContactType.BUSINESS, group_name="Acme Corp")
    )
    await contact_service.create_contact(ctx, MemberCreate(first_name="Ann", parent_contact_id=business.id))
    await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    result = await contact_service.list_group_members(ctx, business.id, ContactFilter())

    assert [c.first_name for c in result.items] == ["Ann"]


@pytest.mark.asyncio
async def test_search_contacts_by_relationship(contact_service, ctx, test_db_session):
    alice = await contact_service.create_contact(ctx, MemberCreate(first_name="Alice"))
    bob = await contact_service.create_contact(ctx, MemberCreate(first_name="Bob"))
    carol = await contact_service.create_contact(ctx, MemberCreate(first_name="Carol"))
    test_db_session.add_all([
        ContactRelationship(
            tenant_id=ctx.tenant_id,
            source_contact_id=alice.id,
            target_contact_id=bob.id,
            relationship_type=RelationshipType.SPOUSE,
        ),
        ContactRelationship(
            tenant_id=ctx.tenant_id,
            source_contact_id=alice.id,
            target_contact_id=carol.id,
            relationship_type=RelationshipType.FRIEND,
        ),
    ])
    await test_db_session.commit()

    related = await contact_service.search_contacts(
        ctx, ContactFilter(related_to_contact_id=alice.id)
    )
    assert sorted(c.first_name for c in related.items) == ["Bob", "Carol"]

    spouses = await contact_service.search_contacts(
        ctx, ContactFilter(related_to_contact_id=alice.id, relationship_type=RelationshipType.SPOUSE)
    )
    assert [c.first_name for c in spouses.items] == ["Bob"]


@pytest.mark.asyncio
async def test_private_contacts_visible_only_to_creator(contact_service, ctx):
    await contact_service.create_contact(
        ctx, MemberCreate(first_name="Secret", visibility=ContactVisibilityLevel.PRIVATE)
    )
    await contact_service.create_contact(ctx, MemberCreate(first_name="Shared"))

    mine = await contact_service.search_contacts(ctx, ContactFilter())
    assert sorted(c.first_name for c in mine.items) == ["Secret", "Shared"]

    colleague = TenantContext(tenant_id=ctx.tenant_id, user_id=uuid.uuid4())
    theirs = await contact_service.search_contacts(colleague, ContactFilter())
    assert [c.first_name for c in theirs.items] == ["Shared"]

    anonymous = TenantContext(tenant_id=ctx.tenant_id)
    assert (await contact_service.search_contacts(anonymous, ContactFilter())).total_count == 1


@pytest.mark.asyncio
async def test_search_contacts_active_and_linked_filters(contact_service, ctx, test_db_session):
    user = User(tenant_id=ctx.tenant_id, email="jane@example.com")
    test_db_session.add(user)
    await test_db_session.commit()

    await contact_service.create_contact(ctx, MemberCreate(first_name="Jane", linked_user_id=user.id))
    john = await contact_service.create_contact(ctx, MemberCreate(first_name="John"))
    await contact_service.update_contact(ctx, john.id, MemberUpdate(is_active=False))

    linked = await contact_service.search_contacts(ctx, ContactFilter(is_user_linked=True))
    assert [c.first_name for c in linked.items] == ["Jane"]

    inactive = await contact_service.search_contacts(ctx, ContactFilter(is_active=False))
    assert [c.first_name for c in inactive.items] == ["John"]


@pytest.mark.asyncio
async def test_get_contact_returns_group_shape_for_groups(contact_service, ctx):
    household = await contact_service.ensure_tenant_household(ctx, "Smith Household")

    contact = await contact_service.get_contact(ctx, household.id)

    assert contact.kind == "group"
    assert contact.group_name == "Smith Household"


@pytest.mark.asyncio
async def test_update_contact(contact_service, ctx, test_db_session):
    vip = await _tag(test_db_session, ctx, "VIP")
    contact = await contact_service.create_contact(
        ctx, MemberCreate(first_name="Jane", last_name="Smith", gender=Gender.FEMALE)
    )

    updated = await contact_service.update_contact(
        ctx,
        contact.id,
        MemberUpdate(preferred_name="JJ", middle_name="Q", gender=None, tag_ids=[vip.id]),
    )

    assert updated.preferred_name == "JJ"
    assert updated.full_name == "Jane Q Smith"
    assert updated.display_name == "JJ Smith"
    assert updated.gender == Gender.FEMALE
    assert [t.name for t in updated.tags] == ["VIP"]
    assert updated.last_name == "Smith"


@pytest.mark.asyncio
async def test_update_contact_cannot_clear_every_name(contact_service, ctx):
    contact = await contact_service.create_contact(ctx, MemberCreate(first_name="Ann"))

    with pytest.raises(ValidationError, match="Either a name or company name is required"):
        await contact_service.update_contact(ctx, contact.id, MemberUpdate(first_name=""))

    unchanged = await contact_service.get_contact(ctx, contact.id)
    assert unchanged.first_name == "Ann"
    assert unchanged.display_name == "Ann"

    renamed = await contact_service.update_contact(
        ctx, contact.id, MemberUpdate(first_name=None, company_name="Ann's Bakery")
    )
    assert renamed.first_name is None
    assert renamed.display_name == "Ann's Bakery"


@pytest.mark.asyncio
async def test_update_contact_rejects_group(contact_service, ctx):
    household = await contact_service.ensure_tenant_household(ctx, "Smith Household")

    with pytest.raises(InvalidStateError):
        await contact_service.update_contact(ctx, household.id, MemberUpdate(first_name="Nope"))


@pytest.mark.asyncio
async def test_delete_contact(contact_service, ctx):
    contact = await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    await contact_service.delete_contact(ctx, contact.id)

    with pytest.raises(NotFoundError):
        await contact_service.get_contact(ctx, contact.id)


@pytest.mark.asyncio
async def test_delete_contact_removes_tag_links(contact_service, ctx, test_db_session):
    vip = await _tag(test_db_session, ctx, "VIP")
    contact = await contact_service.create_contact(ctx, MemberCreate(first_name="Jane", tag_ids=[vip.id]))

    await contact_service.delete_contact(ctx, contact.id)

    links = await test_db_session.scalar(select(func.count()).select_from(contact_tag_links))
    assert links == 0
    assert await test_db_session.get(ContactTag, vip.id) is not None


@pytest.mark.asyncio
async def test_delete_contact_rejects_group(contact_service, ctx):
    household = await contact_service.ensure_tenant_household(ctx, "Smith Household")

    with pytest.raises(InvalidStateError):
        await contact_service.delete_contact(ctx, household.id)


@pytest.mark.asyncio
async def test_members_are_tenant_scoped(contact_service, ctx, other_ctx):
    contact = await contact_service.create_contact(ctx, MemberCreate(first_name="Jane"))

    with pytest.raises(NotFoundError):
        await contact_service.get_contact(other_ctx, contact.id)
    with pytest.raises(NotFoundError):
        await contact_service.delete_contact(other_ctx, contact.id)
    assert (await contact_service.search_contacts(other_ctx, ContactFilter())).total_count == 0
