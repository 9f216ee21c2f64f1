"""
Exception handlers for FastAPI application.

This module provides:
- Custom application exception handler (AppException)
- Pydantic validation error handler (RequestValidationError)
- General unhandled exception handler (Exception)
- Rate limit exceeded handler (RateLimitExceeded)

Every handler renders the same body shape:
    {"error": <message>, "code": <ERROR_CODE>, "details": ..., "meta": {"request_id": ...}}
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from useradmin.core.config import settings
from useradmin.exceptions import AppException

logger = logging.getLogger(__name__)


def _error_body(
    request: Request, message: str, code: str, details: Any
) -> dict[str, Any]:
    return {
        "error": message,
        "code": code,
        "details": details,
        "meta": {
            "request_id": getattr(request.state, "request_id", None),
        },
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Converts AppException to proper HTTP responses with consistent format.
    """
    logger.warning(
        f"Application exception: {exc.error_code} - {exc.message} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.error_code, exc.details),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Malformed input is a client error and is reported as 400.
    """
    logger.warning(
        f"Validation error: {exc.errors()} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )

    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            request, "Request validation failed", "VALIDATION_ERROR", errors
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full error and returns a generic error response to the client.
    """
    logger.error(
        f"Unexpected error: {str(exc)} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})",
        exc_info=True,
    )

    message = (
        "An unexpected error occurred. Please contact support."
        if not settings.debug
        else str(exc)
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, message, "INTERNAL_ERROR", {}),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handle rate limit exceeded errors.

    Returns 429 status.
    """
    logger.warning(
        f"Rate limit exceeded: {request.client.host if request.client else 'unknown'} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(
            request,
            "Rate limit exceeded. Please try again later.",
            "RATE_LIMIT_EXCEEDED",
            {"limit": str(exc.detail)},
        ),
    )
