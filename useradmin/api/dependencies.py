"""
FastAPI dependencies for authentication and service wiring.

This module provides:
- Principal extraction from a JWT bearer token
- Request context (client IP, user agent, request id) for audit entries
- UserService construction over a request-scoped database session
"""

import logging
import uuid
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.core.database import get_db
from useradmin.core.security import TOKEN_TYPE_ACCESS, decode_token, verify_token_type
from useradmin.exceptions import InvalidTokenError
from useradmin.services import (
    AuditService,
    NullSessionStore,
    PermissionService,
    Principal,
    RequestContext,
    UserService,
    UserStore,
)

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
security = HTTPBearer(
    scheme_name="Bearer",
    description="Enter your JWT access token",
    auto_error=False,
)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    """
    Dependency to extract the acting principal from a JWT access token.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Decodes and validates JWT
    3. Verifies token is an access token
    4. Parses the 'sub' claim as the principal's user id

    Whether the principal may do anything is decided later by the policy
    gate, so no database lookup happens here.

    Args:
        credentials: HTTP Bearer credentials from security scheme

    Returns:
        Principal for the token's subject

    Raises:
        InvalidTokenError (401): If token is missing, invalid or malformed
    """
    if not credentials:
        logger.warning("Authentication failed: missing Bearer token")
        raise InvalidTokenError("Missing authentication credentials")

    token = credentials.credentials

    try:
        token_data = decode_token(token)
    except JWTError as e:
        logger.warning(f"Authentication failed: invalid JWT - {e}")
        raise InvalidTokenError("Invalid or expired token")

    if not verify_token_type(token_data, TOKEN_TYPE_ACCESS):
        logger.warning("Authentication failed: wrong token type")
        raise InvalidTokenError("Invalid token type")

    user_id_str = token_data.get("sub")
    if not user_id_str:
        logger.warning("Authentication failed: missing user ID in token")
        raise InvalidTokenError("Invalid token payload")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        logger.warning(f"Authentication failed: invalid user ID format - {user_id_str}")
        raise InvalidTokenError("Invalid token payload")

    return Principal(id=user_id, token=token)


def get_request_context(request: Request) -> RequestContext:
    """Collect the client details recorded on audit entries."""
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_id=getattr(request.state, "request_id", None),
    )


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """
    Build a UserService over the request's database session.

    Args:
        db: Request-scoped database session

    Returns:
        UserService wired to SQL-backed collaborators
    """
    return UserService(
        users=UserStore(db),
        permissions=PermissionService(db),
        audit=AuditService(db),
        sessions=NullSessionStore(),
    )


# Type aliases for dependency injection
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
RequestCtx = Annotated[RequestContext, Depends(get_request_context)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
