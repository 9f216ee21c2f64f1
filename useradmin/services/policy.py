"""
Policy gate for user-management operations.

Decides, for a (principal, operation, target) triple, whether the operation
may proceed and, if not, which audit action tag describes the denial.

Rules, in order:
    1. Nobody may delete their own account. Decided before any permission
       lookup.
    2. Password changes: an admin override needs admin.users; without the
       override only the account owner may change the password (the current
       password is verified later by UserService).
    3. Self-service: a principal acting on itself may view its profile,
       permissions and sessions, terminate its sessions, update its
       notification preferences, and update its profile as long as neither
       role nor status is touched.
    4. Otherwise the principal must hold ANY of the operation's accepted
       permissions.

The gate is read-only. Auditing its decisions is the caller's job.
"""

import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from useradmin.models.audit_log import AuditAction
from useradmin.models.enums import PermissionName
from useradmin.services.ports import PermissionEvaluatorPort


class Operation(str, enum.Enum):
    """User-management operations subject to authorization."""

    VIEW = "view"
    VIEW_LIST = "view-list"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_PASSWORD = "update-password"
    VIEW_PERMISSIONS = "view-permissions"
    DELETE = "delete"
    UPDATE_PREFERENCES = "update-preferences"
    SEARCH = "search"
    VIEW_AUDIT_LOG = "view-audit-log"
    VIEW_SESSIONS = "view-sessions"
    TERMINATE_SESSIONS = "terminate-sessions"


class DenyReason(str, enum.Enum):
    """Why the gate refused an operation."""

    MISSING_PERMISSION = "missing-permission"
    SELF_DELETE_FORBIDDEN = "self-delete-forbidden"
    CROSS_USER_PASSWORD_FORBIDDEN = "cross-user-password-forbidden"


@dataclass(frozen=True)
class Allow:
    """The operation may proceed."""


@dataclass(frozen=True)
class Deny:
    """
    The operation is refused.

    Attributes:
        action: Audit action tag to record
        reason: Machine-readable reason returned to the client
    """

    action: AuditAction
    reason: DenyReason


Decision = Allow | Deny

_ADMIN = PermissionName.ADMIN_USERS.value

# Accepted permissions per operation (OR semantics)
REQUIRED_PERMISSIONS: dict[Operation, tuple[str, ...]] = {
    Operation.VIEW_LIST: (PermissionName.USERS_VIEW.value, _ADMIN),
    Operation.VIEW: (PermissionName.USERS_VIEW.value, _ADMIN),
    Operation.SEARCH: (PermissionName.USERS_VIEW.value, _ADMIN),
    Operation.CREATE: (PermissionName.USERS_CREATE.value, _ADMIN),
    Operation.UPDATE: (PermissionName.USERS_EDIT.value, _ADMIN),
    Operation.UPDATE_PASSWORD: (_ADMIN,),
    Operation.VIEW_PERMISSIONS: (_ADMIN,),
    Operation.DELETE: (_ADMIN,),
    Operation.VIEW_SESSIONS: (_ADMIN,),
    Operation.TERMINATE_SESSIONS: (_ADMIN,),
    Operation.UPDATE_PREFERENCES: (_ADMIN,),
    Operation.VIEW_AUDIT_LOG: (_ADMIN, PermissionName.AUDIT_VIEW.value),
}

DENIAL_ACTIONS: dict[Operation, AuditAction] = {
    Operation.VIEW_LIST: AuditAction.UNAUTHORIZED_ACCESS_ATTEMPT,
    Operation.VIEW: AuditAction.UNAUTHORIZED_USER_LOOKUP,
    Operation.SEARCH: AuditAction.UNAUTHORIZED_USER_SEARCH,
    Operation.CREATE: AuditAction.UNAUTHORIZED_USER_CREATION,
    Operation.UPDATE: AuditAction.UNAUTHORIZED_USER_UPDATE,
    Operation.UPDATE_PASSWORD: AuditAction.UNAUTHORIZED_PASSWORD_ADMIN_OVERRIDE,
    Operation.VIEW_PERMISSIONS: AuditAction.UNAUTHORIZED_PERMISSIONS_LOOKUP,
    Operation.DELETE: AuditAction.UNAUTHORIZED_USER_DELETION,
    Operation.VIEW_SESSIONS: AuditAction.UNAUTHORIZED_SESSIONS_LOOKUP,
    Operation.TERMINATE_SESSIONS: AuditAction.UNAUTHORIZED_SESSION_TERMINATION,
    Operation.UPDATE_PREFERENCES: AuditAction.UNAUTHORIZED_PREFERENCES_UPDATE,
    Operation.VIEW_AUDIT_LOG: AuditAction.UNAUTHORIZED_AUDIT_LOG_ACCESS,
}

SELF_SERVICE_OPERATIONS = frozenset(
    {
        Operation.VIEW,
        Operation.VIEW_PERMISSIONS,
        Operation.VIEW_SESSIONS,
        Operation.TERMINATE_SESSIONS,
        Operation.UPDATE_PREFERENCES,
    }
)

# Fields a user may not change on their own account without users.edit/admin.users
PRIVILEGED_FIELDS = frozenset({"role", "role_id", "status"})


class PolicyGate:
    """
    Authorization decisions for user-management operations.

    Usage:
        gate = PolicyGate(permission_service)
        decision = await gate.authorize(principal.id, Operation.DELETE, target_id)
        if isinstance(decision, Deny):
            ...
    """

    def __init__(self, permissions: PermissionEvaluatorPort):
        """
        Initialize PolicyGate.

        Args:
            permissions: Evaluator used for permission lookups
        """
        self.permissions = permissions

    async def authorize(
        self,
        principal_id: uuid.UUID,
        operation: Operation,
        target_id: uuid.UUID | None = None,
        requested_fields: Iterable[str] = (),
        admin_override: bool = False,
    ) -> Decision:
        """
        Decide whether a principal may perform an operation.

        Args:
            principal_id: Acting user
            operation: Operation being attempted
            target_id: User acted upon (None for list, search and create)
            requested_fields: Field names an update would change
            admin_override: Password change without current-password check

        Returns:
            Allow, or Deny carrying the audit action and reason
        """
        is_self = target_id is not None and target_id == principal_id

        if operation is Operation.DELETE and is_self:
            return Deny(AuditAction.UNAUTHORIZED_USER_DELETION, DenyReason.SELF_DELETE_FORBIDDEN)

        if operation is Operation.UPDATE_PASSWORD:
            return await self._authorize_password_change(
                principal_id, is_self, admin_override
            )

        if is_self and self._is_self_service(operation, requested_fields):
            return Allow()

        if await self.permissions.has_any(principal_id, REQUIRED_PERMISSIONS[operation]):
            return Allow()
        return Deny(DENIAL_ACTIONS[operation], DenyReason.MISSING_PERMISSION)

    async def _authorize_password_change(
        self,
        principal_id: uuid.UUID,
        is_self: bool,
        admin_override: bool,
    ) -> Decision:
        if admin_override:
            if await self.permissions.has_any(
                principal_id, REQUIRED_PERMISSIONS[Operation.UPDATE_PASSWORD]
            ):
                return Allow()
            return Deny(
                AuditAction.UNAUTHORIZED_PASSWORD_ADMIN_OVERRIDE,
                DenyReason.MISSING_PERMISSION,
            )
        if not is_self:
            return Deny(
                AuditAction.UNAUTHORIZED_PASSWORD_CHANGE,
                DenyReason.CROSS_USER_PASSWORD_FORBIDDEN,
            )
        return Allow()

    @staticmethod
    def _is_self_service(operation: Operation, requested_fields: Iterable[str]) -> bool:
        if operation in SELF_SERVICE_OPERATIONS:
            return True
        if operation is Operation.UPDATE:
            return PRIVILEGED_FIELDS.isdisjoint(requested_fields)
        return False
