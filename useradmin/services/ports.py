"""
Capability interfaces consumed by UserService.

UserService only talks to these protocols. The SQLAlchemy-backed
implementations live next to it (UserStore, PermissionService, AuditService,
NullSessionStore); tests substitute in-memory ones.
"""

import uuid
from typing import Any, Protocol

from useradmin.models.audit_log import AuditAction, AuditLog
from useradmin.models.user import User
from useradmin.schemas.user import UserSearchParams


class UserStorePort(Protocol):
    """Storage and password primitives for user records."""

    async def get_all(self) -> list[User]:
        """Return every user that is not soft-deleted."""
        ...

    async def get_by_id(
        self, user_id: uuid.UUID, include_deleted: bool = False
    ) -> User | None:
        """Return a user that is not soft-deleted (unless include_deleted), or None."""
        ...

    async def create(self, fields: dict[str, Any]) -> User:
        """
        Create a user from already-hashed fields.

        Raises:
            DuplicateError: If the username or email is taken
        """
        ...

    async def update(self, user_id: uuid.UUID, fields: dict[str, Any]) -> User:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If the user does not exist
            DuplicateError: If a new username or email is taken
        """
        ...

    def verify_password(self, plain: str, password_hash: str, salt: str) -> bool:
        ...

    def hash_password(self, plain: str, salt: str) -> str:
        ...

    def generate_salt(self) -> str:
        ...

    async def update_password(
        self, user_id: uuid.UUID, password_hash: str, salt: str
    ) -> None:
        ...

    async def reset_failed_login_attempts(self, user_id: uuid.UUID) -> None:
        ...

    async def update_notification_preferences(
        self, user_id: uuid.UUID, preferences: dict[str, Any]
    ) -> dict[str, Any]:
        ...

    async def soft_delete(self, user_id: uuid.UUID) -> None:
        ...

    async def hard_delete(self, user_id: uuid.UUID) -> None:
        """
        Permanently remove a user, including a soft-deleted one.

        The dependent-record check and the delete happen atomically.

        Raises:
            NotFoundError: If the user does not exist
            DependentRecordsError: If messages still reference the user
        """
        ...

    async def search(self, criteria: UserSearchParams) -> list[User]:
        ...


class PermissionEvaluatorPort(Protocol):
    """Answers permission questions about a principal."""

    async def has_any(self, principal_id: uuid.UUID, names: tuple[str, ...]) -> bool:
        """True if the principal holds at least one of the named permissions."""
        ...

    async def get_permissions(self, user_id: uuid.UUID) -> list[str]:
        ...


class AuditLogPort(Protocol):
    """Append-only audit storage."""

    async def append(
        self,
        principal_id: uuid.UUID | None,
        action: AuditAction,
        details: dict[str, Any],
        user_agent: str | None = None,
        request_id: str | None = None,
    ) -> AuditLog:
        """Persist one entry. The entry must survive a later request failure."""
        ...

    async def get_for_target(
        self, target_id: uuid.UUID, limit: int, offset: int
    ) -> list[AuditLog]:
        ...

    async def count_for_target(self, target_id: uuid.UUID) -> int:
        ...


class SessionStorePort(Protocol):
    """Login session storage."""

    async def list(self, target_id: uuid.UUID) -> list[dict[str, Any]]:
        ...

    async def terminate(
        self, target_id: uuid.UUID, exclude_token: str | None = None
    ) -> int:
        """Invalidate the user's sessions and return how many were ended."""
        ...
