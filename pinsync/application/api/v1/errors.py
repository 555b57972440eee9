"""Centralized error transformation for API routes.

Maps pinsync errors (domain and infrastructure) to HTTP status codes and
``{error, code, details?}`` payloads.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pinsync.domain.shared.error import (
    CacheKeyFailure,
    DomainError,
    InfrastructureError,
    NotFoundError,
    PinsyncError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
}


def status_for(error: BaseException) -> int:
    """HTTP status for an error; CacheKeyFailure is mapped by its cause."""
    if isinstance(error, CacheKeyFailure):
        return status_for(error.cause)
    if isinstance(error, InfrastructureError):
        return 503
    if isinstance(error, DomainError):
        for error_type, status in DOMAIN_ERROR_STATUS_MAP.items():
            if isinstance(error, error_type):
                return status
        return 400
    return 500


def error_payload(error: PinsyncError, include_details: bool = False) -> dict[str, Any]:
    """Build the JSON body for an error response.

    Args:
        error: The error to render.
        include_details: Add the underlying cause and field (never in production).
    """
    cause = error.cause if isinstance(error, CacheKeyFailure) else error
    payload: dict[str, Any] = {
        "error": cause.message if isinstance(cause, PinsyncError) else "Internal server error",
        "code": cause.code if isinstance(cause, PinsyncError) else "INTERNAL_ERROR",
    }

    if include_details:
        details: dict[str, Any] = {"type": type(cause).__name__, "message": str(cause)}
        if isinstance(error, CacheKeyFailure):
            details["key"] = error.key
        if isinstance(cause, ValidationError) and cause.field is not None:
            details["field"] = cause.field
        payload["details"] = details

    return payload


def map_pinsync_error(error: PinsyncError, include_details: bool = False) -> HTTPException:
    """Map a pinsync error to an HTTPException whose detail is the error payload."""
    return HTTPException(status_code=status_for(error), detail=error_payload(error, include_details))


def register_error_handlers(app: FastAPI, include_details: bool) -> None:
    """Render every failure as ``{error, code, details?}``.

    ``details`` is only added when ``include_details`` is set (never in production).
    """

    @app.exception_handler(PinsyncError)
    async def pinsync_error_handler(request: Request, exc: PinsyncError) -> JSONResponse:
        http_exc = map_pinsync_error(exc, include_details=include_details)
        if http_exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        content: dict[str, Any] = {"error": "Invalid request", "code": "VALIDATION_ERROR"}
        if include_details:
            content["details"] = {
                "errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
            }
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        content: dict[str, Any] = {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        if include_details:
            content["details"] = {"type": type(exc).__name__, "message": str(exc)}
        return JSONResponse(status_code=500, content=content)
