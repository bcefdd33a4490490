"""
Pytest configuration and fixtures.
Provides test app client and async DB session replacement.
"""

import os

# Must be set before the app and its settings are imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  registers every table on Base.metadata
from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.models.user import User
from app.schemas.tenant import TenantContext
from app.services.contact_service import ContactService


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# SQLite stores UUID columns with NUMERIC affinity, so all-digit hex would
# come back as a REAL. Every id here contains a letter.
TENANT_ID = uuid.UUID("a1111111-1111-1111-1111-111111111111")
OTHER_TENANT_ID = uuid.UUID("b2222222-2222-2222-2222-222222222222")
USER_ID = uuid.UUID("c3333333-3333-3333-3333-333333333333")
OTHER_USER_ID = uuid.UUID("d4444444-4444-4444-4444-444444444444")
COLLEAGUE_USER_ID = uuid.UUID("e5555555-5555-5555-5555-555555555555")

SEEDED_USERS = [
    (USER_ID, TENANT_ID, "owner@example.com"),
    (COLLEAGUE_USER_ID, TENANT_ID, "colleague@example.com"),
    (OTHER_USER_ID, OTHER_TENANT_ID, "other@example.com"),
]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def tenant_headers(tenant_id=TENANT_ID, user_id=USER_ID) -> dict:
    """Headers the upstream gateway would attach to a request."""
    headers = {"X-Tenant-ID": str(tenant_id)}
    if user_id is not None:
        headers["X-User-ID"] = str(user_id)
    return headers


@pytest.fixture(scope="function")
async def test_session_maker():
    """
    Create a fresh in-memory database and return its sessionmaker.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Contacts reference their creating user
    async with session_maker() as session:
        session.add_all(
            User(id=user_id, tenant_id=tenant_id, email=email)
            for user_id, tenant_id, email in SEEDED_USERS
        )
        await session.commit()

    yield session_maker

    # Closing the only connection discards the in-memory database. DROP TABLE
    # would run an implicit DELETE that trips the RESTRICT parent key.
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def test_db_session(test_session_maker):
    """
    Create a test database session.
    Uses in-memory SQLite for fast tests.
    """
    async with test_session_maker() as session:
        yield session


@pytest.fixture
def ctx() -> TenantContext:
    return TenantContext(tenant_id=TENANT_ID, user_id=USER_ID)


@pytest.fixture
def other_ctx() -> TenantContext:
    return TenantContext(tenant_id=OTHER_TENANT_ID, user_id=OTHER_USER_ID)


@pytest.fixture
def colleague_ctx() -> TenantContext:
    """A second user in the same tenant as ``ctx``."""
    return TenantContext(tenant_id=TENANT_ID, user_id=COLLEAGUE_USER_ID)


@pytest.fixture
def contact_service(test_db_session) -> ContactService:
    return ContactService(test_db_session)


@pytest.fixture(scope="function")
async def test_client(test_session_maker):
    """
    Create a test HTTP client backed by the test database.
    """

    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def headers() -> dict:
    return tenant_headers()


@pytest.fixture
def other_headers() -> dict:
    return tenant_headers(OTHER_TENANT_ID, OTHER_USER_ID)
