"""
Async engine and session lifecycle.

The engine is created lazily on first use so that importing the app never
opens a connection. Requests get one session each through ``get_db``; code
outside a request (health probes) uses ``session_scope``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

engine: AsyncEngine = None
async_session_maker: async_sessionmaker[AsyncSession] = None


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DB_ECHO}
    # SQLite (tests, local runs) uses a single-connection pool with no sizing knobs
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return options


def create_engine() -> AsyncEngine:
    """Create the process-wide engine from ``settings.DATABASE_URL``."""
    global engine

    options = _engine_options(settings.DATABASE_URL)
    engine = create_async_engine(settings.DATABASE_URL, **options)
    logger.info(
        "Database engine created",
        extra={
            "dialect": engine.dialect.name,
            "pool_size": options.get("pool_size"),
        },
    )
    return engine


def create_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Create the sessionmaker; objects stay readable after commit."""
    global async_session_maker

    if engine is None:
        create_engine()
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return async_session_maker


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Short-lived session outside the request cycle. Nothing is committed."""
    if async_session_maker is None:
        create_sessionmaker()
    async with async_session_maker() as session:
        yield session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding the request's session.

    Services commit their own units of work. Anything still pending when the
    request finishes is committed; an exception (or a cancelled request)
    rolls it back instead.
    """
    if async_session_maker is None:
        create_sessionmaker()

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise


async def init_db() -> None:
    """Build the engine and sessionmaker at startup."""
    if async_session_maker is None:
        create_sessionmaker()
    logger.info("Database initialized")


async def close_db() -> None:
    """Dispose of pooled connections at shutdown."""
    global engine, async_session_maker

    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    async_session_maker = None
