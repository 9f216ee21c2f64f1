"""
User administration API routes.

This module provides:
- GET /api/v1/users - List users
- GET /api/v1/users/search - Search users
- POST /api/v1/users - Create user
- GET /api/v1/users/{user_id} - Get user
- PATCH /api/v1/users/{user_id} - Update user
- PUT /api/v1/users/{user_id}/password - Change password
- GET /api/v1/users/{user_id}/permissions - Get user permissions
- DELETE /api/v1/users/{user_id} - Soft or hard delete user
- PUT /api/v1/users/{user_id}/notification-preferences - Replace preferences
- GET /api/v1/users/{user_id}/audit-log - Audit entries about a user
- GET /api/v1/users/{user_id}/sessions - List sessions
- DELETE /api/v1/users/{user_id}/sessions - Terminate sessions

Authorization is decided by the service's policy gate, not by route
dependencies, so every denial is audited the same way.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from useradmin.api.dependencies import CurrentPrincipal, RequestCtx, UserServiceDep
from useradmin.core.config import settings
from useradmin.core.rate_limit import limiter
from useradmin.schemas.audit import AuditLogResponse
from useradmin.schemas.common import (
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
)
from useradmin.schemas.user import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    PasswordChange,
    SessionsTerminatedResponse,
    UserCreate,
    UserDeleteResponse,
    UserPermissionsResponse,
    UserResponse,
    UserSearchParams,
    UserSessionsResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


# ============================================================================
# Collection Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
    description="List all non-deleted users (users.view or admin.users)",
)
async def list_users(
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> list[UserResponse]:
    users = await user_service.list_users(principal, ctx)
    return [UserResponse.model_validate(user) for user in users]


@router.get(
    "/search",
    response_model=PaginatedResponse[UserResponse],
    summary="Search users",
    description="Filter non-deleted users by username, email, name, role or status",
)
async def search_users(
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
    criteria: Annotated[UserSearchParams, Query()],
) -> PaginatedResponse[UserResponse]:
    """
    Search users.

    Query parameters:
        - username, email, name: case-insensitive substring filters
        - role_id: exact role
        - status: active, inactive or suspended
        - limit (default 50), offset (default 0)

    Note:
        meta.total is the number of users on this page, not the number
        of matches.
    """
    result = await user_service.search_users(principal, criteria, ctx)
    return PaginatedResponse(
        data=[UserResponse.model_validate(user) for user in result.items],
        meta=PaginationMeta(
            total=result.total,
            limit=criteria.limit,
            offset=criteria.offset,
        ),
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user (users.create or admin.users)",
)
async def create_user(
    data: UserCreate,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> UserResponse:
    """
    Create a user.

    Raises:
        - 403 Forbidden: Missing permission
        - 409 Conflict: Username or email already exists
    """
    user = await user_service.create_user(principal, data, ctx)
    return UserResponse.model_validate(user)


# ============================================================================
# Single User Endpoints
# ============================================================================


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user",
    description="Get a user (self, users.view or admin.users)",
)
async def get_user(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> UserResponse:
    user = await user_service.get_user(principal, user_id, ctx)
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description=(
        "Partially update a user. Profile fields may be changed on one's own "
        "account; role_id and status need users.edit or admin.users"
    ),
)
async def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> UserResponse:
    """
    Update a user.

    Raises:
        - 400 Bad Request: Empty update or status 'deleted'
        - 403 Forbidden: Policy denial
        - 404 Not Found: User absent or deleted
        - 409 Conflict: Username or email already exists
    """
    user = await user_service.update_user(principal, user_id, data, ctx)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}/password",
    response_model=MessageResponse,
    summary="Change password",
    description=(
        "Change one's own password (current password required) or, with "
        "admin_override and admin.users, any user's password"
    ),
)
@limiter.limit(settings.rate_limit_password_change)
async def change_password(
    request: Request,
    user_id: uuid.UUID,
    data: PasswordChange,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> MessageResponse:
    """
    Change a user's password.

    Raises:
        - 400 Bad Request: Missing or wrong current password, weak new password
        - 403 Forbidden: Cross-user change, or override without admin.users
        - 404 Not Found: User absent or deleted
        - 429 Too Many Requests: Rate limit exceeded
    """
    await user_service.change_password(principal, user_id, data, ctx)
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/{user_id}/permissions",
    response_model=UserPermissionsResponse,
    summary="Get user permissions",
    description="Permission names granted to a user (self or admin.users)",
)
async def get_user_permissions(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> UserPermissionsResponse:
    permissions = await user_service.get_user_permissions(principal, user_id, ctx)
    return UserPermissionsResponse(user_id=user_id, permissions=permissions)


@router.delete(
    "/{user_id}",
    response_model=UserDeleteResponse,
    summary="Delete user",
    description="Soft delete (default) or permanently delete a user (admin.users, never self)",
)
async def delete_user(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
    hard: bool = Query(default=False, description="Permanently remove the user"),
) -> UserDeleteResponse:
    """
    Delete a user.

    Raises:
        - 403 Forbidden: Self-delete or missing admin.users
        - 404 Not Found: User absent or already deleted
        - 409 Conflict: Hard delete blocked by the user's messages
    """
    await user_service.delete_user(principal, user_id, ctx, hard=hard)
    message = "User permanently deleted" if hard else "User deleted"
    return UserDeleteResponse(message=message, hard=hard)


@router.put(
    "/{user_id}/notification-preferences",
    response_model=NotificationPreferencesResponse,
    summary="Replace notification preferences",
    description="Replace a user's notification preferences (self or admin.users)",
)
async def update_notification_preferences(
    user_id: uuid.UUID,
    data: NotificationPreferencesUpdate,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> NotificationPreferencesResponse:
    preferences = await user_service.update_notification_preferences(
        principal, user_id, data.preferences, ctx
    )
    return NotificationPreferencesResponse(user_id=user_id, preferences=preferences)


@router.get(
    "/{user_id}/audit-log",
    response_model=PaginatedResponse[AuditLogResponse],
    summary="Get user audit log",
    description="Audit entries about a user, newest first (admin.users or audit.view)",
)
async def get_user_audit_log(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
    pagination: Annotated[PaginationParams, Query()],
) -> PaginatedResponse[AuditLogResponse]:
    result = await user_service.get_user_audit_log(
        principal,
        user_id,
        ctx,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return PaginatedResponse(
        data=[AuditLogResponse.model_validate(entry) for entry in result.items],
        meta=PaginationMeta(
            total=result.total,
            limit=pagination.limit,
            offset=pagination.offset,
        ),
    )


@router.get(
    "/{user_id}/sessions",
    response_model=UserSessionsResponse,
    summary="List user sessions",
    description="Login sessions of a user (self or admin.users)",
)
async def list_user_sessions(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
) -> UserSessionsResponse:
    sessions = await user_service.list_sessions(principal, user_id, ctx)
    return UserSessionsResponse(user_id=user_id, sessions=sessions)


@router.delete(
    "/{user_id}/sessions",
    response_model=SessionsTerminatedResponse,
    summary="Terminate user sessions",
    description="End a user's login sessions (self or admin.users)",
)
async def terminate_user_sessions(
    user_id: uuid.UUID,
    principal: CurrentPrincipal,
    ctx: RequestCtx,
    user_service: UserServiceDep,
    exclude_current: bool = Query(
        default=True, description="Keep the session of the calling token"
    ),
) -> SessionsTerminatedResponse:
    terminated = await user_service.terminate_sessions(
        principal, user_id, ctx, exclude_current=exclude_current
    )
    return SessionsTerminatedResponse(user_id=user_id, terminated=terminated)
