"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses with a uniform {error, message, details} body.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import AutomationServiceException
from app.shared.telemetry.tracing import get_trace_id

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "AUTOMATION_CYCLE": 409,
    "AUTOMATION_MAX_DEPTH_EXCEEDED": 409,
    "DUPLICATE_SEQUENTIAL_AUTOMATION": 409,
    "DUPLICATE_AUTOMATION": 409,
    "AUTOMATION_CONFIG_ERROR": 422,
    "SERVICE_UNAVAILABLE": 503,
}

# SQLSTATE 40001 serialization_failure, 40P01 deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _automation_exception_handler(
    request: Request, exc: AutomationServiceException
) -> JSONResponse:
    """Return JSON from AutomationServiceException.to_dict() with the mapped status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 409:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.error_code)
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder(exc.to_dict()),
    )


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _dbapi_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Return 409 for serialization failures (caller may retry); 500 otherwise."""
    if _sqlstate(exc) in _RETRYABLE_SQLSTATES:
        logger.warning(
            "%s %s aborted by concurrent update: %s",
            request.method,
            request.url.path,
            exc.orig,
        )
        return JSONResponse(
            status_code=409,
            content={
                "error": "CONCURRENT_UPDATE",
                "message": "The automation graph changed concurrently; retry the request.",
                "details": {},
            },
        )
    return _generic_exception_handler(request, exc)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail, "trace_id": get_trace_id()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: AutomationServiceException (and
    subclasses), DBAPIError, RequestValidationError, StarletteHTTPException,
    generic Exception.
    """
    app.add_exception_handler(AutomationServiceException, _automation_exception_handler)
    app.add_exception_handler(DBAPIError, _dbapi_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
