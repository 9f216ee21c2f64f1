"""
FastAPI application entry point.

This module sets up:
- FastAPI application with middleware
- Exception handlers
- Rate limiting
- API routes
- CORS configuration
"""

import logging

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from useradmin.api.routes import health, root, users
from useradmin.core.config import settings
from useradmin.core.handlers import (
    app_exception_handler,
    general_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)
from useradmin.core.lifespan import lifespan
from useradmin.core.logging import setup_logging
from useradmin.core.rate_limit import limiter
from useradmin.exceptions import AppException
from useradmin.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)

setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# FastAPI Application
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description=settings.description,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.state.limiter = limiter


# ============================================================================
# Exception Handlers
# ============================================================================
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(Exception, general_exception_handler)


# ============================================================================
# Middleware Setup
# ============================================================================
# Starlette runs the last-added middleware first, so RequestIDMiddleware is
# added after RequestLoggingMiddleware to wrap it.
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=settings.is_production,
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# API Routes
# ============================================================================
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(users.router)

api_router = APIRouter(prefix="/api")
api_router.include_router(v1_router)

app.include_router(root.router)
app.include_router(health.router)
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "useradmin.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
