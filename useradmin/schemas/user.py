"""
User Pydantic schemas for API request/response handling.

This module provides:
- User creation and update schemas
- User response schemas (never expose password hash or salt)
- Password change schema
- Search criteria, permission, preference and session schemas
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from useradmin.core.security import validate_password_strength
from useradmin.models.enums import UserStatus
from useradmin.schemas.common import PaginationParams


def _check_username(value: str | None) -> str | None:
    if value is not None and not value.isalnum():
        raise ValueError("Username can only contain letters and numbers")
    return value


def _check_assignable_status(value: UserStatus | None) -> UserStatus | None:
    if value is not None and value not in UserStatus.assignable():
        raise ValueError("Status 'deleted' cannot be set directly; use the delete operation")
    return value


def _check_password(value: str) -> str:
    is_valid, error_message = validate_password_strength(value)
    if not is_valid:
        raise ValueError(error_message)
    return value


class UserCreate(BaseModel):
    """
    Schema for user creation by an administrator.

    Attributes:
        username: Unique alphanumeric username (3-50 characters)
        email: Unique email address
        password: Initial password (validated for strength)
        first_name: Given name
        last_name: Family name
        role_id: Role to assign (default role when omitted)
    """

    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=3, max_length=50, description="Username (3-50 characters)")
    email: EmailStr = Field(description="Email address")
    password: str = Field(description="Password (min 8 characters, one digit, one uppercase)")
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role_id: uuid.UUID | None = Field(default=None, description="Role to assign")

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        """Validate username format."""
        return _check_username(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        """Validate password strength requirements."""
        return _check_password(value)


class UserUpdate(BaseModel):
    """
    Schema for partial user updates (PATCH).

    role_id and status are privileged: changing them requires users.edit or
    admin.users even on one's own account.
    """

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: EmailStr | None = Field(default=None)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role_id: uuid.UUID | None = Field(default=None)
    status: UserStatus | None = Field(default=None)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        """Validate username format if provided."""
        return _check_username(value)

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: UserStatus | None) -> UserStatus | None:
        """Reject 'deleted'; deletion has its own operation."""
        return _check_assignable_status(value)

    @model_validator(mode="after")
    def reject_null_required(self) -> "UserUpdate":
        """Columns that cannot be empty may be omitted but not set to null."""
        for name in ("username", "email", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PasswordChange(BaseModel):
    """
    Schema for changing a user's password.

    Attributes:
        current_password: Required when changing one's own password
        new_password: New password (validated for strength)
        admin_override: Skip current-password verification (needs admin.users)
    """

    model_config = ConfigDict(extra="forbid")

    current_password: str | None = Field(default=None)
    new_password: str = Field(description="New password")
    admin_override: bool = Field(default=False)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        """Validate new password strength requirements."""
        return _check_password(value)


class NotificationPreferencesUpdate(BaseModel):
    """Replacement notification preferences (opaque mapping)."""

    preferences: dict[str, Any] = Field(description="Client-defined preference mapping")


class UserSearchParams(PaginationParams):
    """
    Search criteria for users.

    Text criteria are case-insensitive substring matches. Deleted users are
    never returned, so 'deleted' is not an accepted status filter.
    """

    username: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = Field(default=None, min_length=1, max_length=255)
    name: str | None = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Matches first or last name",
    )
    role_id: uuid.UUID | None = Field(default=None)
    status: UserStatus | None = Field(default=None)

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: UserStatus | None) -> UserStatus | None:
        """Reject 'deleted'; deleted users are excluded from search."""
        return _check_assignable_status(value)


class UserResponse(BaseModel):
    """
    Schema for user responses.

    Attributes:
        id: User's unique identifier
        username: Username
        email: Email address
        first_name: Given name
        last_name: Family name
        role_id: Assigned role
        status: Account status
        last_login: Last login timestamp
        password_last_changed: When the password was last set
        notification_preferences: Client-defined preference mapping
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    id: uuid.UUID
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role_id: uuid.UUID | None = None
    status: UserStatus
    last_login: datetime | None = None
    password_last_changed: datetime | None = None
    notification_preferences: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPermissionsResponse(BaseModel):
    """Permission names granted to a user."""

    user_id: uuid.UUID
    permissions: list[str]


class NotificationPreferencesResponse(BaseModel):
    """A user's notification preferences after an update."""

    user_id: uuid.UUID
    preferences: dict[str, Any]


class UserDeleteResponse(BaseModel):
    """Confirmation of a soft or hard delete."""

    message: str
    hard: bool


class UserSessionsResponse(BaseModel):
    """Active sessions of a user."""

    user_id: uuid.UUID
    sessions: list[dict[str, Any]]


class SessionsTerminatedResponse(BaseModel):
    """Number of sessions terminated."""

    user_id: uuid.UUID
    terminated: int
