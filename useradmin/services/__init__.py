"""
Service layer: policy decisions, orchestration and port implementations.
"""

from useradmin.services.audit_service import AuditService
from useradmin.services.context import Principal, RequestContext
from useradmin.services.permission_service import PermissionService
from useradmin.services.policy import Allow, Deny, DenyReason, Operation, PolicyGate
from useradmin.services.session_store import NullSessionStore
from useradmin.services.user_service import UserService
from useradmin.services.user_store import UserStore

__all__ = [
    "Allow",
    "AuditService",
    "Deny",
    "DenyReason",
    "NullSessionStore",
    "Operation",
    "PermissionService",
    "PolicyGate",
    "Principal",
    "RequestContext",
    "UserService",
    "UserStore",
]
