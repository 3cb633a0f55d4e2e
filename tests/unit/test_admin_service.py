# =============================================================================
# tests/unit/test_admin_service.py
# Unit Tests for AdminService
# =============================================================================

import pytest
from unittest.mock import MagicMock

from fintrack_core.errors import RemoteUnreachableError
from fintrack_core.models import ProfileStatus, Role, UserProfile
from fintrack_core.services.admin_service import AdminService
from fintrack_core.stores.base import ProfileDirectory
from fintrack_core.stores.local_directory import LocalProfileDirectory
from fintrack_core.stores.script_endpoint import ScriptEndpointClient

ADMIN = "admin@example.com"


@pytest.fixture
def directory(cache):
    local = LocalProfileDirectory(cache)
    local.insert(UserProfile(id="1", email="boss@example.com", name="Boss", role=Role.SUPERADMIN))
    local.insert(UserProfile(id="2", email="ana@example.com", name="Ana", role=Role.ADMIN))
    local.insert(UserProfile(id="3", email="ben@example.com", name="Ben", status=ProfileStatus.PENDING))
    local.insert(UserProfile(id="4", email="cai@example.com", name="Cai", status=ProfileStatus.INACTIVE))
    return local


@pytest.fixture
def admin(directory, audit):
    return AdminService(directory, audit=audit)


class TestListing:
    def test_lists_directory(self, admin):
        result = admin.get_all_users()

        assert result.success
        assert [u.id for u in result.data] == ["1", "2", "3", "4"]

    def test_script_endpoint_preferred(self, directory, audit):
        script = MagicMock(spec=ScriptEndpointClient)
        script.get_users.return_value = [UserProfile(id="s", email="s@example.com", name="S")]
        admin = AdminService(directory, audit=audit, script=script)

        assert [u.id for u in admin.get_all_users().data] == ["s"]

    def test_script_failure_falls_back(self, directory, audit):
        script = MagicMock(spec=ScriptEndpointClient)
        script.get_users.side_effect = RemoteUnreachableError("down", store="script")
        admin = AdminService(directory, audit=audit, script=script)

        assert len(admin.get_all_users().data) == 4

    def test_primary_failure_uses_fallback(self, directory, audit):
        remote = MagicMock(spec=ProfileDirectory)
        remote.list_profiles.side_effect = RemoteUnreachableError("down", store="supabase")
        admin = AdminService(remote, audit=audit, fallback=directory)

        assert len(admin.get_all_users().data) == 4

    def test_failure_without_fallback_is_failed_result(self, audit):
        remote = MagicMock(spec=ProfileDirectory)
        remote.list_profiles.side_effect = RemoteUnreachableError("down", store="supabase")
        result = AdminService(remote, audit=audit).get_all_users()

        assert not result.success
        assert result.error_code == "STORE_001"


class TestMutations:
    """Role, status and delete changes are applied and audited"""

    def test_update_role(self, admin, directory, audit):
        result = admin.update_user_role("2", "viewer", ADMIN)

        assert result.success
        assert directory.find_by_id("2").role == Role.VIEWER
        entry = audit.list()[0]
        assert entry.action == "UPDATE_ROLE"
        assert entry.details == "Updated role for ana@example.com to viewer"

    def test_invalid_role(self, admin):
        assert not admin.update_user_role("2", "owner", ADMIN).success

    def test_unknown_user(self, admin):
        result = admin.update_user_role("99", Role.ADMIN, ADMIN)

        assert not result.success
        assert result.error_code == "STORE_404"

    def test_update_status(self, admin, directory, audit):
        result = admin.update_user_status("3", ProfileStatus.INACTIVE, ADMIN)

        assert result.success
        assert directory.find_by_id("3").status == ProfileStatus.INACTIVE
        assert audit.list()[0].action == "UPDATE_STATUS"

    def test_delete_user(self, admin, directory, audit):
        result = admin.delete_user("4", ADMIN)

        assert result.success
        assert directory.find_by_id("4") is None
        assert audit.list()[0].details == "Deleted user cai@example.com"

    def test_delete_unknown_user(self, admin, audit):
        assert not admin.delete_user("99", ADMIN).success
        assert audit.list() == []


class TestStats:
    def test_counts(self, admin):
        stats = admin.get_admin_stats().data

        assert stats.total_users == 4
        assert stats.active_users == 2
        assert stats.total_admins == 2
        assert stats.pending_users == 1
        assert stats.to_dict()["totalUsers"] == 4
