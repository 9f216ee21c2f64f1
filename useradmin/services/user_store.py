"""
SQLAlchemy-backed user store.

This module provides:
- User reads that exclude soft-deleted accounts
- User creation with uniqueness checks and default-role assignment
- Partial updates, password and preference updates
- Soft delete and guarded hard delete
- Filtered search
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.core import security
from useradmin.exceptions import (
    AlreadyExistsError,
    DependentRecordsError,
    DuplicateError,
    InvalidInputError,
    NotFoundError,
)
from useradmin.models.enums import UserStatus
from useradmin.models.user import User
from useradmin.repositories.message_repository import MessageRepository
from useradmin.repositories.role_repository import RoleRepository
from useradmin.repositories.user_repository import UserRepository
from useradmin.schemas.user import UserSearchParams

logger = logging.getLogger(__name__)


class UserStore:
    """
    User storage built on the user, role and message repositories.

    Methods flush but never commit; the audit entry written after each
    operation commits the session.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserStore.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)
        self.message_repo = MessageRepository(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_all(self) -> list[User]:
        return await self.user_repo.get_all()

    async def get_by_id(
        self, user_id: uuid.UUID, include_deleted: bool = False
    ) -> User | None:
        return await self.user_repo.get_by_id(user_id, include_deleted=include_deleted)

    async def search(self, criteria: UserSearchParams) -> list[User]:
        """
        Search non-deleted users.

        Args:
            criteria: Validated search criteria with limit and offset

        Returns:
            Matching users for the requested page
        """
        return await self.user_repo.search(
            username=criteria.username,
            email=criteria.email,
            name=criteria.name,
            role_id=criteria.role_id,
            status=criteria.status.value if criteria.status else None,
            limit=criteria.limit,
            offset=criteria.offset,
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, fields: dict[str, Any]) -> User:
        """
        Create a user.

        Args:
            fields: Column values including password_hash and salt. When
                role_id is missing the default role is assigned.

        Returns:
            Created User instance

        Raises:
            DuplicateError: If username or email is already taken
            InvalidInputError: If role_id names no role
        """
        await self._ensure_unique(fields.get("username"), fields.get("email"))

        role_id = fields.get("role_id")
        if role_id is None:
            default_role = await self.role_repo.get_default()
            fields = {**fields, "role_id": default_role.id if default_role else None}
        else:
            await self._ensure_role_exists(role_id)

        user = User(
            **{
                "status": UserStatus.active.value,
                "failed_login_attempts": 0,
                "notification_preferences": {},
                "password_last_changed": datetime.now(UTC),
                **fields,
            }
        )

        try:
            user = await self.user_repo.add(user)
        except IntegrityError as e:
            logger.warning(f"User creation hit a uniqueness constraint: {e.orig}")
            raise AlreadyExistsError(
                "User", message="User with this username or email already exists"
            ) from e

        logger.info(f"User created: {user.id} ({user.username})")
        return user

    async def update(self, user_id: uuid.UUID, fields: dict[str, Any]) -> User:
        """
        Apply a partial update to a user.

        Args:
            user_id: User to update
            fields: Column values to change

        Returns:
            Updated User instance

        Raises:
            NotFoundError: If the user does not exist
            DuplicateError: If a new username or email is taken
            InvalidInputError: If role_id names no role
        """
        user = await self._get_or_raise(user_id)

        new_username = fields.get("username")
        new_email = fields.get("email")
        await self._ensure_unique(
            new_username if new_username != user.username else None,
            new_email if new_email != user.email else None,
        )
        if fields.get("role_id") is not None:
            await self._ensure_role_exists(fields["role_id"])

        for name, value in fields.items():
            if isinstance(value, UserStatus):
                value = value.value
            setattr(user, name, value)

        try:
            return await self.user_repo.update(user)
        except IntegrityError as e:
            raise AlreadyExistsError(
                "User", message="User with this username or email already exists"
            ) from e

    async def update_password(
        self, user_id: uuid.UUID, password_hash: str, salt: str
    ) -> None:
        user = await self._get_or_raise(user_id)
        user.password_hash = password_hash
        user.salt = salt
        user.password_last_changed = datetime.now(UTC)
        await self.user_repo.update(user)

    async def reset_failed_login_attempts(self, user_id: uuid.UUID) -> None:
        """Clear the failed-login counter and any active lockout."""
        user = await self._get_or_raise(user_id)
        user.failed_login_attempts = 0
        user.lockout_until = None
        await self.user_repo.update(user)

    async def update_notification_preferences(
        self, user_id: uuid.UUID, preferences: dict[str, Any]
    ) -> dict[str, Any]:
        user = await self._get_or_raise(user_id)
        user.notification_preferences = dict(preferences)
        user = await self.user_repo.update(user)
        return user.notification_preferences

    async def soft_delete(self, user_id: uuid.UUID) -> None:
        user = await self._get_or_raise(user_id)
        user.status = UserStatus.deleted.value
        await self.user_repo.update(user)

    async def hard_delete(self, user_id: uuid.UUID) -> None:
        """
        Permanently remove a user, soft-deleted or not.

        Locks the user row, counts authored messages and deletes in the same
        transaction. The messages.sender_id foreign key (ON DELETE RESTRICT)
        backs this check at the database level.

        Args:
            user_id: User to remove

        Raises:
            NotFoundError: If the user does not exist
            DependentRecordsError: If messages still reference the user
        """
        user = await self.user_repo.get_for_update(user_id, include_deleted=True)
        if user is None:
            raise NotFoundError("User")

        message_count = await self.message_repo.count_by_sender(user_id)
        if message_count > 0:
            logger.warning(
                f"Hard delete of user {user_id} refused: {message_count} messages"
            )
            raise DependentRecordsError(message_count=message_count)

        try:
            await self.user_repo.delete(user)
        except IntegrityError as e:
            logger.warning(f"Hard delete of user {user_id} blocked by constraint: {e.orig}")
            raise DependentRecordsError() from e

    # -------------------------------------------------------------------------
    # Password primitives
    # -------------------------------------------------------------------------

    def verify_password(self, plain: str, password_hash: str, salt: str) -> bool:
        return security.verify_password(plain, password_hash, salt)

    def hash_password(self, plain: str, salt: str) -> str:
        return security.hash_password(plain, salt)

    def generate_salt(self) -> str:
        return security.generate_salt()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _get_or_raise(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def _ensure_unique(self, username: str | None, email: str | None) -> None:
        if username and await self.user_repo.get_by_username(username):
            raise DuplicateError("username", username)
        if email and await self.user_repo.get_by_email(email):
            raise DuplicateError("email", email)

    async def _ensure_role_exists(self, role_id: uuid.UUID) -> None:
        if await self.role_repo.get_by_id(role_id) is None:
            raise InvalidInputError(field="role_id", message="Role not found")
