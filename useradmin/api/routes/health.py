"""
Liveness and readiness probes.
"""

from typing import Any

from fastapi import APIRouter, Request, Response, status

from useradmin.core.config import settings
from useradmin.core.database import check_database_connection

router = APIRouter(prefix="/health", tags=["Health"])


def _service_info() -> dict[str, str]:
    return {
        "app": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
    }


@router.get("/")
async def health_check() -> dict[str, str]:
    """Liveness: the process is up and serving requests."""
    return {"status": "healthy", **_service_info()}


@router.get("/ready")
async def readiness_check(request: Request, response: Response) -> dict[str, Any]:
    """
    Readiness: the database answers.

    Returns 503 while the database is unreachable (or before startup has
    created the session factory) so load balancers stop routing traffic.
    """
    sessionmaker = getattr(request.app.state, "sessionmaker", None)
    db_ok = await check_database_connection(sessionmaker)

    if not db_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if db_ok else "degraded",
        **_service_info(),
        "checks": {"database": "ok" if db_ok else "unavailable"},
    }
