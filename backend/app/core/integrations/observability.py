"""
Observability hooks.

Telemetry export is attached by the deployment (an OTLP collector reading
stdout). The service announces where it expects telemetry to go and logs
unhandled exceptions with enough request context to find the tenant.
"""

import logging

from fastapi import Request

from app.core.config import settings

logger = logging.getLogger(__name__)


def request_context(request: Request) -> dict:
    """Method, path and caller identity of a request, for log ``extra``."""
    return {
        "method": request.method,
        "path": request.url.path,
        "tenant_id": request.headers.get(settings.TENANT_HEADER, "-"),
        "user_id": request.headers.get(settings.USER_HEADER),
    }


def setup_observability() -> None:
    """Log the telemetry target for this process."""
    logger.info(
        "Observability configured",
        extra={
            "otel_endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            "service_name": settings.OTEL_SERVICE_NAME,
            "environment": settings.OTEL_ENVIRONMENT,
        },
    )


def record_exception(exc: Exception, request: Request) -> None:
    """Record an exception that escaped the service layer."""
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={"exception_message": str(exc), **request_context(request)},
    )
