"""
Role repository for role and permission lookups.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.models.enums import UserStatus
from useradmin.models.role import Permission, Role, role_permissions
from useradmin.models.user import User
from useradmin.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Repository for Role model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Role, session)

    async def get_default(self) -> Role | None:
        """
        Get the role assigned to users created without one.

        Returns:
            The role marked is_default, or None if no default is configured
        """
        result = await self.session.execute(
            select(Role).where(Role.is_default.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_permission_names(self, user_id: uuid.UUID) -> list[str]:
        """
        Get the permission names granted to a user through its role.

        Args:
            user_id: UUID of the user

        Returns:
            Sorted list of permission names (empty if the user has no role
            or is deleted)
        """
        query = (
            select(Permission.name)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .join(User, User.role_id == role_permissions.c.role_id)
            .where(User.id == user_id, User.status != UserStatus.deleted.value)
            .order_by(Permission.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
