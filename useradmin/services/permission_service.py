"""
Permission service for role-based access checks.

A user's permissions are the permissions attached to its role. Checks use
ANY semantics: holding one of the accepted permissions is enough.

Usage:
    permission_service = PermissionService(session)
    allowed = await permission_service.has_any(
        principal_id, ("users.view", "admin.users")
    )
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from useradmin.repositories.role_repository import RoleRepository

logger = logging.getLogger(__name__)


class PermissionService:
    """Service for checking role-granted permissions."""

    def __init__(self, session: AsyncSession):
        """
        Initialize permission service.

        Args:
            session: Async database session
        """
        self.session = session
        self.role_repo = RoleRepository(session)

    async def get_permissions(self, user_id: uuid.UUID) -> list[str]:
        """
        Get the permission names a user holds.

        Args:
            user_id: ID of the user

        Returns:
            Sorted permission names (empty if the user has no role)
        """
        return await self.role_repo.get_permission_names(user_id)

    async def has_any(self, principal_id: uuid.UUID, names: tuple[str, ...]) -> bool:
        """
        Check whether a principal holds at least one of the named permissions.

        Args:
            principal_id: ID of the acting user
            names: Accepted permission names

        Returns:
            True if any of names is granted
        """
        granted = set(await self.get_permissions(principal_id))
        allowed = any(name in granted for name in names)

        if not allowed:
            logger.debug(
                f"Permission check failed: user={principal_id} "
                f"required_any={list(names)}"
            )

        return allowed
