"""
HTTP middleware.

This module provides:
- RequestIDMiddleware: request id on request.state, in the logging context
  and on the X-Request-ID response header
- SecurityHeadersMiddleware: fixed hardening headers on every response
- RequestLoggingMiddleware: one access log line per request
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from useradmin.core.logging import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # Responses carry account data
    "Cache-Control": "no-store",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Correlate a request across logs, audit entries and error bodies.

    An incoming X-Request-ID is reused so callers can trace their own ids;
    otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS, plus HSTS when enable_hsts is set (production)."""

    def __init__(self, app: ASGIApp, enable_hsts: bool = False):
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS)
        if enable_hsts:
            self.headers["Strict-Transport-Security"] = HSTS_VALUE

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(self.headers)
        return response


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status, client and duration of every request.

    5xx responses and unhandled exceptions log at ERROR, 4xx at WARNING,
    everything else at INFO. The duration is also returned in
    X-Response-Time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        line = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{line} failed - client={client} "
                f"duration={time.perf_counter() - started:.3f}s"
            )
            raise

        duration = time.perf_counter() - started
        logger.log(
            _level_for(response.status_code),
            f"{line} {response.status_code} - client={client} duration={duration:.3f}s",
        )
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
