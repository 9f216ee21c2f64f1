"""
Unit tests for UserService.

The service runs against the in-memory ports from conftest, so these tests
exercise the authorize, load, perform and audit sequence end to end without
a database.
"""

import uuid

import pytest

from useradmin.core import security
from useradmin.exceptions import (
    DependentRecordsError,
    DuplicateError,
    ForbiddenError,
    IncorrectPasswordError,
    InvalidInputError,
    NotFoundError,
)
from useradmin.models.audit_log import AuditAction
from useradmin.models.enums import UserStatus
from useradmin.schemas.user import (
    PasswordChange,
    UserCreate,
    UserSearchParams,
    UserUpdate,
)
from useradmin.services import Principal


def as_principal(user, token=None) -> Principal:
    return Principal(id=user.id, token=token)


class TestListAndGet:
    """Listing and single-user lookup."""

    @pytest.mark.asyncio
    async def test_list_users_excludes_deleted(
        self, user_service, user_store, admin_user, regular_user, ctx, audit_log
    ):
        deleted = user_store.add("gone", status=UserStatus.deleted.value)

        users = await user_service.list_users(as_principal(admin_user), ctx)

        ids = {u.id for u in users}
        assert regular_user.id in ids
        assert deleted.id not in ids
        assert audit_log.last.action == AuditAction.USERS_LISTED.value
        assert audit_log.last.details["count"] == len(users)

    @pytest.mark.asyncio
    async def test_list_users_denied_is_audited(
        self, user_service, regular_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError) as exc_info:
            await user_service.list_users(as_principal(regular_user), ctx)

        assert exc_info.value.details == {"reason": "missing-permission"}
        assert audit_log.actions == [AuditAction.UNAUTHORIZED_ACCESS_ATTEMPT.value]
        entry = audit_log.last
        assert entry.user_id == regular_user.id
        assert entry.ip_address == "10.0.0.1"
        assert entry.request_id == "req-test-1"
        assert entry.details["reason"] == "missing-permission"

    @pytest.mark.asyncio
    async def test_get_self_without_permissions(self, user_service, regular_user, ctx, audit_log):
        user = await user_service.get_user(as_principal(regular_user), regular_user.id, ctx)

        assert user.id == regular_user.id
        assert audit_log.last.action == AuditAction.USER_LOOKED_UP.value
        assert audit_log.last.target_user_id == regular_user.id

    @pytest.mark.asyncio
    async def test_get_other_without_permissions_denied(
        self, user_service, regular_user, other_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.get_user(as_principal(regular_user), other_user.id, ctx)

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_USER_LOOKUP.value]
        assert audit_log.last.target_user_id == other_user.id

    @pytest.mark.asyncio
    async def test_get_missing_user_not_found(self, user_service, admin_user, ctx, audit_log):
        with pytest.raises(NotFoundError):
            await user_service.get_user(as_principal(admin_user), uuid.uuid4(), ctx)

        assert audit_log.entries == []

    @pytest.mark.asyncio
    async def test_denial_precedes_existence_check(self, user_service, regular_user, ctx):
        """An unauthorized caller learns nothing about whether the user exists."""
        with pytest.raises(ForbiddenError):
            await user_service.get_user(as_principal(regular_user), uuid.uuid4(), ctx)

    @pytest.mark.asyncio
    async def test_get_soft_deleted_user_not_found(
        self, user_service, user_store, admin_user, ctx
    ):
        deleted = user_store.add("gone", status=UserStatus.deleted.value)

        with pytest.raises(NotFoundError):
            await user_service.get_user(as_principal(admin_user), deleted.id, ctx)


class TestSearch:
    """User search."""

    @pytest.mark.asyncio
    async def test_search_filters_by_name(
        self, user_service, moderator_user, regular_user, other_user, ctx
    ):
        result = await user_service.search_users(
            as_principal(moderator_user), UserSearchParams(name="smi"), ctx
        )

        assert [u.id for u in result.items] == [regular_user.id]

    @pytest.mark.asyncio
    async def test_search_total_is_page_size(
        self, user_service, user_store, moderator_user, ctx
    ):
        for i in range(5):
            user_store.add(f"member{i}")

        result = await user_service.search_users(
            as_principal(moderator_user),
            UserSearchParams(username="member", limit=2, offset=0),
            ctx,
        )

        assert len(result.items) == 2
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_search_audits_criteria(self, user_service, admin_user, ctx, audit_log):
        await user_service.search_users(
            as_principal(admin_user), UserSearchParams(email="example"), ctx
        )

        entry = audit_log.last
        assert entry.action == AuditAction.USER_SEARCH_PERFORMED.value
        assert entry.details["criteria"]["email"] == "example"
        assert entry.target_user_id is None

    @pytest.mark.asyncio
    async def test_search_without_permission_denied(
        self, user_service, regular_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.search_users(
                as_principal(regular_user), UserSearchParams(), ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_USER_SEARCH.value]


class TestCreate:
    """User creation."""

    @pytest.mark.asyncio
    async def test_create_user_hashes_password(self, user_service, admin_user, ctx, audit_log):
        data = UserCreate(username="carol", email="carol@example.com", password="Secret123")

        user = await user_service.create_user(as_principal(admin_user), data, ctx)

        assert user.username == "carol"
        assert user.password_hash != "Secret123"
        assert security.verify_password("Secret123", user.password_hash, user.salt)
        assert audit_log.last.action == AuditAction.USER_CREATED.value
        assert audit_log.last.target_user_id == user.id
        assert audit_log.last.details["username"] == "carol"

    @pytest.mark.asyncio
    async def test_create_duplicate_username(self, user_service, admin_user, regular_user, ctx):
        data = UserCreate(username="alice", email="new@example.com", password="Secret123")

        with pytest.raises(DuplicateError) as exc_info:
            await user_service.create_user(as_principal(admin_user), data, ctx)

        assert exc_info.value.details == {"field": "username"}

    @pytest.mark.asyncio
    async def test_create_without_permission_denied(
        self, user_service, moderator_user, ctx, audit_log
    ):
        data = UserCreate(username="carol", email="carol@example.com", password="Secret123")

        with pytest.raises(ForbiddenError):
            await user_service.create_user(as_principal(moderator_user), data, ctx)

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_USER_CREATION.value]


class TestUpdate:
    """Partial updates."""

    @pytest.mark.asyncio
    async def test_self_profile_update(self, user_service, regular_user, ctx, audit_log):
        data = UserUpdate(first_name="Alicia")

        user = await user_service.update_user(
            as_principal(regular_user), regular_user.id, data, ctx
        )

        assert user.first_name == "Alicia"
        assert audit_log.last.action == AuditAction.USER_UPDATED.value
        assert audit_log.last.details["fields"] == ["first_name"]

    @pytest.mark.asyncio
    async def test_self_status_change_denied(self, user_service, regular_user, ctx, audit_log):
        data = UserUpdate(status=UserStatus.suspended)

        with pytest.raises(ForbiddenError):
            await user_service.update_user(
                as_principal(regular_user), regular_user.id, data, ctx
            )

        assert regular_user.status == UserStatus.active.value
        assert audit_log.actions == [AuditAction.UNAUTHORIZED_USER_UPDATE.value]

    @pytest.mark.asyncio
    async def test_admin_changes_status(self, user_service, admin_user, regular_user, ctx):
        data = UserUpdate(status=UserStatus.suspended)

        user = await user_service.update_user(
            as_principal(admin_user), regular_user.id, data, ctx
        )

        assert user.status == UserStatus.suspended.value

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, user_service, admin_user, regular_user, ctx, audit_log):
        with pytest.raises(InvalidInputError):
            await user_service.update_user(
                as_principal(admin_user), regular_user.id, UserUpdate(), ctx
            )

        assert audit_log.entries == []

    @pytest.mark.asyncio
    async def test_update_to_taken_email(
        self, user_service, admin_user, regular_user, other_user, ctx
    ):
        data = UserUpdate(email=other_user.email)

        with pytest.raises(DuplicateError):
            await user_service.update_user(
                as_principal(admin_user), regular_user.id, data, ctx
            )


class TestChangePassword:
    """Password changes."""

    @pytest.mark.asyncio
    async def test_own_password_with_current(
        self, user_service, user_store, regular_user, ctx, audit_log
    ):
        regular_user.failed_login_attempts = 3
        old_salt = regular_user.salt
        data = PasswordChange(current_password="Password123", new_password="NewSecret456")

        await user_service.change_password(
            as_principal(regular_user), regular_user.id, data, ctx
        )

        assert regular_user.salt != old_salt
        assert security.verify_password(
            "NewSecret456", regular_user.password_hash, regular_user.salt
        )
        assert regular_user.failed_login_attempts == 0
        assert regular_user.password_last_changed is not None
        assert audit_log.last.action == AuditAction.USER_PASSWORD_CHANGED.value
        assert audit_log.last.details["admin_override"] is False

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, user_service, regular_user, ctx, audit_log):
        old_hash = regular_user.password_hash
        data = PasswordChange(current_password="Wrong12345", new_password="NewSecret456")

        with pytest.raises(IncorrectPasswordError):
            await user_service.change_password(
                as_principal(regular_user), regular_user.id, data, ctx
            )

        assert regular_user.password_hash == old_hash
        assert audit_log.actions == [AuditAction.PASSWORD_CHANGE_WRONG_CURRENT_PASSWORD.value]

    @pytest.mark.asyncio
    async def test_missing_current_password(self, user_service, regular_user, ctx):
        data = PasswordChange(new_password="NewSecret456")

        with pytest.raises(InvalidInputError):
            await user_service.change_password(
                as_principal(regular_user), regular_user.id, data, ctx
            )

    @pytest.mark.asyncio
    async def test_cross_user_without_override_denied(
        self, user_service, admin_user, regular_user, ctx, audit_log
    ):
        data = PasswordChange(current_password="Password123", new_password="NewSecret456")

        with pytest.raises(ForbiddenError) as exc_info:
            await user_service.change_password(
                as_principal(admin_user), regular_user.id, data, ctx
            )

        assert exc_info.value.details == {"reason": "cross-user-password-forbidden"}
        assert audit_log.actions == [AuditAction.UNAUTHORIZED_PASSWORD_CHANGE.value]

    @pytest.mark.asyncio
    async def test_admin_override(self, user_service, admin_user, regular_user, ctx, audit_log):
        data = PasswordChange(new_password="NewSecret456", admin_override=True)

        await user_service.change_password(
            as_principal(admin_user), regular_user.id, data, ctx
        )

        assert security.verify_password(
            "NewSecret456", regular_user.password_hash, regular_user.salt
        )
        assert audit_log.last.details["admin_override"] is True

    @pytest.mark.asyncio
    async def test_override_without_admin_users_denied(
        self, user_service, moderator_user, regular_user, ctx, audit_log
    ):
        data = PasswordChange(new_password="NewSecret456", admin_override=True)

        with pytest.raises(ForbiddenError):
            await user_service.change_password(
                as_principal(moderator_user), regular_user.id, data, ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_PASSWORD_ADMIN_OVERRIDE.value]


class TestPermissionsAndPreferences:
    """Permission lookup and notification preferences."""

    @pytest.mark.asyncio
    async def test_own_permissions(self, user_service, moderator_user, ctx):
        names = await user_service.get_user_permissions(
            as_principal(moderator_user), moderator_user.id, ctx
        )

        assert names == ["audit.view", "users.view"]

    @pytest.mark.asyncio
    async def test_other_permissions_need_admin_users(
        self, user_service, moderator_user, regular_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.get_user_permissions(
                as_principal(moderator_user), regular_user.id, ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_PERMISSIONS_LOOKUP.value]

    @pytest.mark.asyncio
    async def test_update_own_preferences(self, user_service, regular_user, ctx, audit_log):
        stored = await user_service.update_notification_preferences(
            as_principal(regular_user), regular_user.id, {"email": False, "push": True}, ctx
        )

        assert stored == {"email": False, "push": True}
        assert regular_user.notification_preferences == stored
        assert audit_log.last.details["keys"] == ["email", "push"]

    @pytest.mark.asyncio
    async def test_update_other_preferences_denied(
        self, user_service, regular_user, other_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.update_notification_preferences(
                as_principal(regular_user), other_user.id, {"email": False}, ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_PREFERENCES_UPDATE.value]


class TestDelete:
    """Soft and hard deletion."""

    @pytest.mark.asyncio
    async def test_soft_delete(self, user_service, user_store, admin_user, regular_user, ctx, audit_log):
        await user_service.delete_user(as_principal(admin_user), regular_user.id, ctx)

        assert regular_user.status == UserStatus.deleted.value
        assert regular_user.id in user_store.users
        assert audit_log.last.action == AuditAction.USER_SOFT_DELETED.value
        assert audit_log.last.details["username"] == "alice"

    @pytest.mark.asyncio
    async def test_soft_delete_twice_not_found(self, user_service, admin_user, regular_user, ctx):
        await user_service.delete_user(as_principal(admin_user), regular_user.id, ctx)

        with pytest.raises(NotFoundError):
            await user_service.delete_user(as_principal(admin_user), regular_user.id, ctx)

    @pytest.mark.asyncio
    async def test_hard_delete(self, user_service, user_store, admin_user, regular_user, ctx, audit_log):
        await user_service.delete_user(
            as_principal(admin_user), regular_user.id, ctx, hard=True
        )

        assert regular_user.id not in user_store.users
        assert audit_log.last.action == AuditAction.USER_HARD_DELETED.value

    @pytest.mark.asyncio
    async def test_soft_deleted_user_excluded_from_search(
        self, user_service, admin_user, regular_user, other_user, ctx
    ):
        admin = as_principal(admin_user)
        await user_service.delete_user(admin, regular_user.id, ctx)

        result = await user_service.search_users(admin, UserSearchParams(), ctx)

        ids = [u.id for u in result.items]
        assert regular_user.id not in ids
        assert other_user.id in ids

    @pytest.mark.asyncio
    async def test_hard_delete_after_soft_delete(
        self, user_service, user_store, admin_user, regular_user, ctx, audit_log
    ):
        admin = as_principal(admin_user)
        await user_service.delete_user(admin, regular_user.id, ctx)

        await user_service.delete_user(admin, regular_user.id, ctx, hard=True)

        assert regular_user.id not in user_store.users
        assert audit_log.actions == [
            AuditAction.USER_SOFT_DELETED.value,
            AuditAction.USER_HARD_DELETED.value,
        ]
        assert audit_log.last.details["username"] == "alice"

    @pytest.mark.asyncio
    async def test_hard_delete_missing_user(self, user_service, admin_user, ctx):
        with pytest.raises(NotFoundError):
            await user_service.delete_user(
                as_principal(admin_user), uuid.uuid4(), ctx, hard=True
            )

    @pytest.mark.asyncio
    async def test_hard_delete_blocked_by_messages(
        self, user_service, user_store, admin_user, regular_user, ctx, audit_log
    ):
        user_store.messages[regular_user.id] = 2

        with pytest.raises(DependentRecordsError) as exc_info:
            await user_service.delete_user(
                as_principal(admin_user), regular_user.id, ctx, hard=True
            )

        assert exc_info.value.details == {"message_count": 2}
        assert regular_user.id in user_store.users
        assert AuditAction.USER_HARD_DELETED.value not in audit_log.actions

    @pytest.mark.asyncio
    async def test_self_delete_denied(self, user_service, admin_user, ctx, audit_log):
        with pytest.raises(ForbiddenError) as exc_info:
            await user_service.delete_user(as_principal(admin_user), admin_user.id, ctx)

        assert exc_info.value.details == {"reason": "self-delete-forbidden"}
        assert admin_user.status == UserStatus.active.value
        assert audit_log.actions == [AuditAction.UNAUTHORIZED_USER_DELETION.value]
        assert audit_log.last.details["reason"] == "self-delete-forbidden"


class TestAuditLog:
    """Per-user audit log access."""

    @pytest.mark.asyncio
    async def test_audit_log_newest_first(
        self, user_service, admin_user, moderator_user, regular_user, ctx
    ):
        await user_service.get_user(as_principal(admin_user), regular_user.id, ctx)
        await user_service.update_user(
            as_principal(admin_user), regular_user.id, UserUpdate(last_name="Doe"), ctx
        )

        result = await user_service.get_user_audit_log(
            as_principal(moderator_user), regular_user.id, ctx
        )

        assert [e.action for e in result.items] == [
            AuditAction.USER_UPDATED.value,
            AuditAction.USER_LOOKED_UP.value,
        ]
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_access_is_audited_after_read(
        self, user_service, admin_user, regular_user, ctx, audit_log
    ):
        await user_service.get_user_audit_log(as_principal(admin_user), regular_user.id, ctx)

        assert audit_log.last.action == AuditAction.AUDIT_LOG_ACCESSED.value
        assert audit_log.last.details["count"] == 0

    @pytest.mark.asyncio
    async def test_audit_log_of_hard_deleted_user(
        self, user_service, admin_user, regular_user, ctx
    ):
        await user_service.delete_user(
            as_principal(admin_user), regular_user.id, ctx, hard=True
        )

        result = await user_service.get_user_audit_log(
            as_principal(admin_user), regular_user.id, ctx
        )

        assert [e.action for e in result.items] == [AuditAction.USER_HARD_DELETED.value]

    @pytest.mark.asyncio
    async def test_own_audit_log_denied_without_permission(
        self, user_service, regular_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.get_user_audit_log(
                as_principal(regular_user), regular_user.id, ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_AUDIT_LOG_ACCESS.value]

    @pytest.mark.asyncio
    async def test_pagination(self, user_service, admin_user, regular_user, ctx):
        for _ in range(3):
            await user_service.get_user(as_principal(admin_user), regular_user.id, ctx)

        result = await user_service.get_user_audit_log(
            as_principal(admin_user), regular_user.id, ctx, limit=2, offset=1
        )

        assert len(result.items) == 2
        assert result.total == 3


class TestSessions:
    """Session listing and termination."""

    @pytest.mark.asyncio
    async def test_list_own_sessions(self, user_service, session_store, regular_user, ctx):
        session_store.open(regular_user.id, "token-a")

        sessions = await user_service.list_sessions(
            as_principal(regular_user), regular_user.id, ctx
        )

        assert [s["token"] for s in sessions] == ["token-a"]

    @pytest.mark.asyncio
    async def test_terminate_own_keeps_current(
        self, user_service, session_store, regular_user, ctx, audit_log
    ):
        session_store.open(regular_user.id, "current")
        session_store.open(regular_user.id, "other-device")

        terminated = await user_service.terminate_sessions(
            as_principal(regular_user, token="current"), regular_user.id, ctx
        )

        assert terminated == 1
        assert [s["token"] for s in session_store.sessions[regular_user.id]] == ["current"]
        assert audit_log.last.action == AuditAction.USER_SESSIONS_TERMINATED.value
        assert audit_log.last.details["count"] == 1

    @pytest.mark.asyncio
    async def test_admin_terminates_all(
        self, user_service, session_store, admin_user, regular_user, ctx
    ):
        session_store.open(regular_user.id, "a")
        session_store.open(regular_user.id, "b")

        terminated = await user_service.terminate_sessions(
            as_principal(admin_user, token="admin-token"), regular_user.id, ctx
        )

        assert terminated == 2
        assert session_store.sessions[regular_user.id] == []

    @pytest.mark.asyncio
    async def test_terminate_own_including_current(
        self, user_service, session_store, regular_user, ctx
    ):
        session_store.open(regular_user.id, "current")
        session_store.open(regular_user.id, "other-device")

        terminated = await user_service.terminate_sessions(
            as_principal(regular_user, token="current"),
            regular_user.id,
            ctx,
            exclude_current=False,
        )

        assert terminated == 2
        assert session_store.sessions[regular_user.id] == []

    @pytest.mark.asyncio
    async def test_terminate_other_denied(
        self, user_service, regular_user, other_user, ctx, audit_log
    ):
        with pytest.raises(ForbiddenError):
            await user_service.terminate_sessions(
                as_principal(regular_user), other_user.id, ctx
            )

        assert audit_log.actions == [AuditAction.UNAUTHORIZED_SESSION_TERMINATION.value]
