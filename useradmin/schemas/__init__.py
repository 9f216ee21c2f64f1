"""
Pydantic schemas for request validation and response serialization.
"""

from useradmin.schemas.audit import AuditLogResponse
from useradmin.schemas.common import (
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    SearchResult,
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

__all__ = [
    "AuditLogResponse",
    "MessageResponse",
    "NotificationPreferencesResponse",
    "NotificationPreferencesUpdate",
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "PasswordChange",
    "SearchResult",
    "SessionsTerminatedResponse",
    "UserCreate",
    "UserDeleteResponse",
    "UserPermissionsResponse",
    "UserResponse",
    "UserSearchParams",
    "UserSessionsResponse",
    "UserUpdate",
]
