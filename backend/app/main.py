"""
FastAPI application entry point.

``create_app`` assembles routers, middleware and exception handlers; the
lifespan owns everything that needs a running event loop (database engine,
DI container).
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.api.v1.router import api_router
from app.api.v1.endpoints.health import get_health
from app.core.config import settings
from app.core.exceptions import setup_exception_handlers
from app.core.integrations.observability import setup_observability
from app.core.logging import get_logger, setup_logging
from app.db.session import init_db, close_db
from app.deps.di_container import build_container, set_container

logger = get_logger(__name__)


def build_limiter() -> Limiter:
    """Per-client-address limit applied to every route by SlowAPIMiddleware."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
        enabled=settings.RATE_LIMIT_ENABLED,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    setup_logging()
    setup_observability()
    await init_db()

    container = build_container()
    app.state.container = container
    set_container(container)
    logger.info(
        "Service started",
        extra={
            "version": settings.VERSION,
            "tenant_header": settings.TENANT_HEADER,
            "rate_limit_enabled": settings.RATE_LIMIT_ENABLED,
        },
    )

    yield

    await close_db()


def _add_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        # Tenant and user headers must survive preflight
        allow_headers=["*"],
    )

    app.state.limiter = build_limiter()
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Household and business contact groups API",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    _add_middleware(app)
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", include_in_schema=False)
    async def root_health():
        """Unversioned liveness probe for orchestrators."""
        return await get_health()

    setup_exception_handlers(app)
    return app


app = create_app()
