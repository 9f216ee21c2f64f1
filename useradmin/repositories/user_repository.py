"""
User repository for user-specific database operations.

This module provides database operations for the User model,
including uniqueness lookups, filtered search and row locking.
"""

import uuid
from typing import Any

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.enums import UserStatus
from useradmin.models.user import User
from useradmin.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    Repository for User model operations.

    Normal reads exclude soft-deleted users (status 'deleted').
    Uniqueness lookups include them: usernames and emails of deleted
    accounts stay reserved.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserRepository.

        Args:
            session: Async database session
        """
        super().__init__(User, session)

    def _apply_visibility_filter(self, query: Select[Any]) -> Select[Any]:
        return query.where(User.status != UserStatus.deleted.value)

    async def get_by_username(self, username: str) -> User | None:
        """
        Get user by username, including soft-deleted users.

        Args:
            username: Username to search for

        Returns:
            User instance or None if not found
        """
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email address, including soft-deleted users.

        Args:
            email: Email address to search for

        Returns:
            User instance or None if not found
        """
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_for_update(
        self, user_id: uuid.UUID, include_deleted: bool = False
    ) -> User | None:
        """
        Get a user and lock its row until the transaction ends.

        Used by hard delete so the dependent-record check and the delete
        see the same state.

        Args:
            user_id: UUID of the user
            include_deleted: Also match soft-deleted users

        Returns:
            Locked User instance or None if not found
        """
        query = select(User).where(User.id == user_id).with_for_update()
        if not include_deleted:
            query = self._apply_visibility_filter(query)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def search(
        self,
        username: str | None = None,
        email: str | None = None,
        name: str | None = None,
        role_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[User]:
        """
        Filter visible users with multiple criteria and pagination.

        Text criteria are case-insensitive substring matches; name matches
        either first or last name.

        Args:
            username: Substring of the username
            email: Substring of the email
            name: Substring of first or last name
            role_id: Exact role id
            status: Exact status (never 'deleted')
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of User instances ordered by created_at descending, not by
            username
        """
        query = self._apply_visibility_filter(select(User))

        if username:
            query = query.where(User.username.ilike(f"%{username}%"))
        if email:
            query = query.where(User.email.ilike(f"%{email}%"))
        if name:
            pattern = f"%{name}%"
            query = query.where(
                or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern))
            )
        if role_id is not None:
            query = query.where(User.role_id == role_id)
        if status is not None:
            query = query.where(User.status == status)

        query = query.order_by(User.created_at.desc()).offset(offset).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())
