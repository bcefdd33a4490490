"""
Application exceptions and the FastAPI handlers that render them.

Every error response has the same body::

    {"error": {"code": ..., "message": ..., "details": ..., "path": ...}}

``code`` is stable for clients; ``message`` is for people.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.integrations.observability import record_exception

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    code = "error"

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(AppException):
    """Referenced entity does not exist in the caller's tenant."""
    code = "not_found"

    def __init__(self, entity: str, entity_id: Optional[Any] = None):
        details = {"entity": entity}
        if entity_id is not None:
            details["id"] = str(entity_id)
        super().__init__(f"{entity} not found", status.HTTP_404_NOT_FOUND, details)
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(AppException):
    """Operation not permitted given the entity's current role or flags."""
    code = "invalid_state"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class ValidationError(AppException):
    """Request content rejected by the service layer."""
    code = "validation_error"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    body = {"code": code, "message": message, "path": request.url.path}
    body.update(extra)
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render service-layer exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "details": exc.details,
        },
    )
    if exc.status_code >= 500:
        record_exception(exc, request)

    return _error_response(request, exc.status_code, exc.code, exc.message, details=exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP exceptions raised by routing and dependencies (404, 401, ...)."""
    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    code = "unauthorized" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "http_error"
    return _error_response(
        request,
        exc.status_code,
        code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


def _jsonable_error(error: dict) -> dict:
    """pydantic puts the raised ValueError itself into ``ctx``; stringify it."""
    cleaned = dict(error)
    ctx = cleaned.get("ctx")
    if isinstance(ctx, dict):
        cleaned["ctx"] = {k: str(v) if isinstance(v, Exception) else v for k, v in ctx.items()}
    cleaned.pop("input", None)
    cleaned.pop("url", None)
    return cleaned


def _field_errors(errors: list) -> dict:
    """Group validation messages by dotted field path."""
    fields: dict = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        message = error.get("msg", "Invalid value").removeprefix("Value error, ")
        fields.setdefault(field, []).append(message)
    return fields


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with per-field messages."""
    errors = [_jsonable_error(error) for error in exc.errors()]
    logger.warning(
        "Validation error",
        extra={"path": request.url.path, "errors": errors},
    )
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ValidationError.code,
        "Validation error",
        fields=_field_errors(errors),
        details=errors,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything unexpected as an opaque 500."""
    logger.exception(
        f"Unhandled exception: {str(exc)}",
        extra={"path": request.url.path, "exception_type": type(exc).__name__},
    )
    record_exception(exc, request)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "Internal server error",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
