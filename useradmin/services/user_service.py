"""
User administration service.

Every operation follows the same sequence:
    1. Ask the PolicyGate. On Deny: log a warning, write the denial audit
       entry, raise ForbiddenError.
    2. Load the target where there is one (NotFoundError if absent or
       soft-deleted).
    3. Perform the store operation.
    4. Write the success audit entry.

Collaborators are injected as ports so the service runs against SQL-backed
implementations in the application and in-memory ones in tests.
"""

import logging
import uuid
from typing import Any

from useradmin.exceptions import (
    ForbiddenError,
    IncorrectPasswordError,
    InvalidInputError,
    NotFoundError,
)
from useradmin.models.audit_log import AuditAction, AuditLog
from useradmin.models.user import User
from useradmin.schemas.common import SearchResult
from useradmin.schemas.user import (
    PasswordChange,
    UserCreate,
    UserSearchParams,
    UserUpdate,
)
from useradmin.services.context import Principal, RequestContext
from useradmin.services.policy import Deny, Operation, PolicyGate
from useradmin.services.ports import (
    AuditLogPort,
    PermissionEvaluatorPort,
    SessionStorePort,
    UserStorePort,
)

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for permission-gated user management.

    This service handles:
    - Listing, lookup, search (users.view / admin.users, or self for lookup)
    - Creation (users.create / admin.users)
    - Profile updates (self for non-privileged fields, else users.edit / admin.users)
    - Password changes (self with current password, or admin override)
    - Permission, session and preference management
    - Soft and hard deletion (admin.users, never self)
    - Per-user audit log access (admin.users / audit.view)
    """

    def __init__(
        self,
        users: UserStorePort,
        permissions: PermissionEvaluatorPort,
        audit: AuditLogPort,
        sessions: SessionStorePort,
    ):
        """
        Initialize UserService.

        Args:
            users: User storage and password primitives
            permissions: Permission evaluator used by the policy gate
            audit: Append-only audit log
            sessions: Login session store
        """
        self.users = users
        self.permissions = permissions
        self.audit = audit
        self.sessions = sessions
        self.gate = PolicyGate(permissions)

    # -------------------------------------------------------------------------
    # Listing and lookup
    # -------------------------------------------------------------------------

    async def list_users(self, principal: Principal, ctx: RequestContext) -> list[User]:
        """
        List all non-deleted users.

        Raises:
            ForbiddenError: Without users.view or admin.users
        """
        await self._authorize(principal, Operation.VIEW_LIST, ctx)

        users = await self.users.get_all()

        await self._record(
            principal, AuditAction.USERS_LISTED, ctx, count=len(users)
        )
        return users

    async def get_user(
        self, principal: Principal, user_id: uuid.UUID, ctx: RequestContext
    ) -> User:
        """
        Get one user.

        Args:
            principal: Acting user
            user_id: User to fetch
            ctx: Client details for the audit entry

        Returns:
            The user

        Raises:
            ForbiddenError: Other user without users.view or admin.users
            NotFoundError: If the user does not exist or is deleted
        """
        await self._authorize(principal, Operation.VIEW, ctx, target_id=user_id)

        user = await self._load_target(user_id)

        await self._record(principal, AuditAction.USER_LOOKED_UP, ctx, target_id=user_id)
        return user

    async def search_users(
        self,
        principal: Principal,
        criteria: UserSearchParams,
        ctx: RequestContext,
    ) -> SearchResult[User]:
        """
        Search non-deleted users.

        The returned total is the number of users on this page, not the
        number of users matching the criteria. Clients paginate until a
        short page comes back.

        Args:
            principal: Acting user
            criteria: Filters plus limit and offset
            ctx: Client details for the audit entry

        Returns:
            SearchResult with the page and its size as total

        Raises:
            ForbiddenError: Without users.view or admin.users
        """
        await self._authorize(principal, Operation.SEARCH, ctx)

        users = await self.users.search(criteria)

        await self._record(
            principal,
            AuditAction.USER_SEARCH_PERFORMED,
            ctx,
            criteria=criteria.model_dump(mode="json", exclude_none=True),
            count=len(users),
        )
        return SearchResult(items=users, total=len(users))

    # -------------------------------------------------------------------------
    # Create and update
    # -------------------------------------------------------------------------

    async def create_user(
        self, principal: Principal, data: UserCreate, ctx: RequestContext
    ) -> User:
        """
        Create a user.

        Raises:
            ForbiddenError: Without users.create or admin.users
            DuplicateError: If the username or email is taken
        """
        await self._authorize(principal, Operation.CREATE, ctx)

        salt = self.users.generate_salt()
        fields = data.model_dump(exclude={"password"})
        fields["password_hash"] = self.users.hash_password(data.password, salt)
        fields["salt"] = salt

        user = await self.users.create(fields)

        logger.info(f"User {user.id} ({user.username}) created by {principal.id}")
        await self._record(
            principal,
            AuditAction.USER_CREATED,
            ctx,
            target_id=user.id,
            username=user.username,
        )
        return user

    async def update_user(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        data: UserUpdate,
        ctx: RequestContext,
    ) -> User:
        """
        Apply a partial update.

        Users may update their own profile fields; role_id and status always
        need users.edit or admin.users.

        Raises:
            InvalidInputError: If no fields are supplied
            ForbiddenError: If the gate refuses the update
            NotFoundError: If the user does not exist or is deleted
            DuplicateError: If a new username or email is taken
        """
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise InvalidInputError(message="No fields to update")

        await self._authorize(
            principal,
            Operation.UPDATE,
            ctx,
            target_id=user_id,
            requested_fields=fields.keys(),
        )

        await self._load_target(user_id)
        user = await self.users.update(user_id, fields)

        logger.info(f"User {user_id} updated by {principal.id}: {sorted(fields)}")
        await self._record(
            principal,
            AuditAction.USER_UPDATED,
            ctx,
            target_id=user_id,
            fields=sorted(fields),
        )
        return user

    # -------------------------------------------------------------------------
    # Password
    # -------------------------------------------------------------------------

    async def change_password(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        data: PasswordChange,
        ctx: RequestContext,
    ) -> None:
        """
        Change a user's password.

        Without admin_override only the account owner may change the
        password and must supply the current one. With admin_override the
        principal needs admin.users and no verification happens.

        On success the password is rehashed with a fresh salt and any failed
        login counter and lockout are cleared.

        Raises:
            ForbiddenError: Cross-user change without override, or override
                without admin.users
            NotFoundError: If the user does not exist or is deleted
            InvalidInputError: If current_password is missing
            IncorrectPasswordError: If current_password does not match
        """
        await self._authorize(
            principal,
            Operation.UPDATE_PASSWORD,
            ctx,
            target_id=user_id,
            admin_override=data.admin_override,
        )

        user = await self._load_target(user_id)

        if not data.admin_override:
            if not data.current_password:
                raise InvalidInputError(
                    field="current_password", message="Current password is required"
                )
            if not self.users.verify_password(
                data.current_password, user.password_hash, user.salt
            ):
                logger.warning(f"Wrong current password for user {user_id}")
                await self._record(
                    principal,
                    AuditAction.PASSWORD_CHANGE_WRONG_CURRENT_PASSWORD,
                    ctx,
                    target_id=user_id,
                )
                raise IncorrectPasswordError()

        salt = self.users.generate_salt()
        password_hash = self.users.hash_password(data.new_password, salt)
        await self.users.update_password(user_id, password_hash, salt)
        await self.users.reset_failed_login_attempts(user_id)

        logger.info(
            f"Password changed for user {user_id} by {principal.id} "
            f"(admin_override={data.admin_override})"
        )
        await self._record(
            principal,
            AuditAction.USER_PASSWORD_CHANGED,
            ctx,
            target_id=user_id,
            admin_override=data.admin_override,
        )

    # -------------------------------------------------------------------------
    # Permissions and preferences
    # -------------------------------------------------------------------------

    async def get_user_permissions(
        self, principal: Principal, user_id: uuid.UUID, ctx: RequestContext
    ) -> list[str]:
        """
        Get the permission names a user holds.

        Raises:
            ForbiddenError: Other user without admin.users
            NotFoundError: If the user does not exist or is deleted
        """
        await self._authorize(principal, Operation.VIEW_PERMISSIONS, ctx, target_id=user_id)

        await self._load_target(user_id)
        permissions = await self.permissions.get_permissions(user_id)

        await self._record(
            principal,
            AuditAction.USER_PERMISSIONS_LOOKED_UP,
            ctx,
            target_id=user_id,
            count=len(permissions),
        )
        return permissions

    async def update_notification_preferences(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        preferences: dict[str, Any],
        ctx: RequestContext,
    ) -> dict[str, Any]:
        """
        Replace a user's notification preferences.

        Raises:
            ForbiddenError: Other user without admin.users
            NotFoundError: If the user does not exist or is deleted
        """
        await self._authorize(
            principal, Operation.UPDATE_PREFERENCES, ctx, target_id=user_id
        )

        await self._load_target(user_id)
        stored = await self.users.update_notification_preferences(user_id, preferences)

        await self._record(
            principal,
            AuditAction.NOTIFICATION_PREFERENCES_UPDATED,
            ctx,
            target_id=user_id,
            keys=sorted(stored),
        )
        return stored

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    async def delete_user(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        ctx: RequestContext,
        hard: bool = False,
    ) -> None:
        """
        Delete a user.

        Soft delete (default) sets status to 'deleted' and keeps the row.
        Hard delete removes the row, also for an already soft-deleted user,
        and is refused while the user has authored messages.

        Raises:
            ForbiddenError: Self-delete, or missing admin.users
            NotFoundError: If the user does not exist, or for a soft delete
                is already deleted
            DependentRecordsError: Hard delete blocked by messages
        """
        await self._authorize(principal, Operation.DELETE, ctx, target_id=user_id)

        user = await self._load_target(user_id, include_deleted=hard)
        username = user.username

        if hard:
            await self.users.hard_delete(user_id)
            action = AuditAction.USER_HARD_DELETED
        else:
            await self.users.soft_delete(user_id)
            action = AuditAction.USER_SOFT_DELETED

        logger.info(f"User {user_id} deleted by {principal.id} (hard={hard})")
        await self._record(principal, action, ctx, target_id=user_id, username=username)

    # -------------------------------------------------------------------------
    # Audit log
    # -------------------------------------------------------------------------

    async def get_user_audit_log(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        ctx: RequestContext,
        limit: int = 50,
        offset: int = 0,
    ) -> SearchResult[AuditLog]:
        """
        Get audit entries about a user, newest first.

        The target does not have to exist: entries outlive hard-deleted
        users. The access itself is audited after the page is read, so it
        does not appear in the returned page.

        Raises:
            ForbiddenError: Without admin.users or audit.view
        """
        await self._authorize(principal, Operation.VIEW_AUDIT_LOG, ctx, target_id=user_id)

        entries = await self.audit.get_for_target(user_id, limit=limit, offset=offset)
        total = await self.audit.count_for_target(user_id)

        await self._record(
            principal,
            AuditAction.AUDIT_LOG_ACCESSED,
            ctx,
            target_id=user_id,
            count=len(entries),
        )
        return SearchResult(items=entries, total=total)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def list_sessions(
        self, principal: Principal, user_id: uuid.UUID, ctx: RequestContext
    ) -> list[dict[str, Any]]:
        """
        List a user's login sessions.

        Raises:
            ForbiddenError: Other user without admin.users
            NotFoundError: If the user does not exist or is deleted
        """
        await self._authorize(principal, Operation.VIEW_SESSIONS, ctx, target_id=user_id)

        await self._load_target(user_id)
        sessions = await self.sessions.list(user_id)

        await self._record(
            principal,
            AuditAction.USER_SESSIONS_LOOKED_UP,
            ctx,
            target_id=user_id,
            count=len(sessions),
        )
        return sessions

    async def terminate_sessions(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        ctx: RequestContext,
        exclude_current: bool = True,
    ) -> int:
        """
        Terminate a user's login sessions.

        With exclude_current (default) the session behind the caller's own
        bearer token survives; it only matches when callers terminate their
        own sessions.

        Returns:
            Number of sessions terminated

        Raises:
            ForbiddenError: Other user without admin.users
            NotFoundError: If the user does not exist or is deleted
        """
        await self._authorize(
            principal, Operation.TERMINATE_SESSIONS, ctx, target_id=user_id
        )

        await self._load_target(user_id)
        exclude_token = principal.token if exclude_current else None
        terminated = await self.sessions.terminate(user_id, exclude_token=exclude_token)

        logger.info(f"{terminated} sessions of user {user_id} terminated by {principal.id}")
        await self._record(
            principal,
            AuditAction.USER_SESSIONS_TERMINATED,
            ctx,
            target_id=user_id,
            count=terminated,
        )
        return terminated

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _authorize(
        self,
        principal: Principal,
        operation: Operation,
        ctx: RequestContext,
        target_id: uuid.UUID | None = None,
        requested_fields: Any = (),
        admin_override: bool = False,
    ) -> None:
        decision = await self.gate.authorize(
            principal.id,
            operation,
            target_id=target_id,
            requested_fields=requested_fields,
            admin_override=admin_override,
        )
        if not isinstance(decision, Deny):
            return

        logger.warning(
            f"Denied {operation.value} by {principal.id} on {target_id}: "
            f"{decision.reason.value}"
        )
        await self._record(
            principal,
            decision.action,
            ctx,
            target_id=target_id,
            reason=decision.reason.value,
        )
        raise ForbiddenError(
            message="You do not have permission to perform this action",
            details={"reason": decision.reason.value},
        )

    async def _load_target(
        self, user_id: uuid.UUID, include_deleted: bool = False
    ) -> User:
        user = await self.users.get_by_id(user_id, include_deleted=include_deleted)
        if user is None:
            raise NotFoundError("User")
        return user

    async def _record(
        self,
        principal: Principal,
        action: AuditAction,
        ctx: RequestContext,
        target_id: uuid.UUID | None = None,
        **extra: Any,
    ) -> None:
        details: dict[str, Any] = {
            "target_id": str(target_id) if target_id else None,
            "ip_address": ctx.ip_address,
            **extra,
        }
        await self.audit.append(
            principal.id,
            action,
            details,
            user_agent=ctx.user_agent,
            request_id=ctx.request_id,
        )
