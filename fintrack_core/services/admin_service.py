# =============================================================================
# fintrack_core/services/admin_service.py
# User administration for admin dashboards
# =============================================================================

from __future__ import annotations
from typing import List, Optional, Union

from fintrack_core.errors import NotFoundError
from fintrack_core.logging import get_logger
from fintrack_core.models import AdminStats, ProfileStatus, Role, UserProfile
from fintrack_core.services.audit_pipeline import AuditPipeline
from fintrack_core.services.base_service import BaseService, ServiceResult
from fintrack_core.stores.base import ProfileDirectory
from fintrack_core.stores.script_endpoint import ScriptEndpointClient

logger = get_logger(__name__)


class AdminService(BaseService):
    """
    List, re-role, deactivate and delete users.

    Listing asks the script endpoint first, then the profile directory, then
    the fallback directory. Changes always go to the primary directory and
    are written to the audit log.
    """

    def __init__(
        self,
        directory: ProfileDirectory,
        audit: Optional[AuditPipeline] = None,
        script: Optional[ScriptEndpointClient] = None,
        fallback: Optional[ProfileDirectory] = None,
    ):
        super().__init__()
        self.directory = directory
        self.audit = audit
        self.script = script
        self.fallback = fallback

    def _list_users(self) -> List[UserProfile]:
        if self.script is not None:
            try:
                return self.script.get_users()
            except Exception as e:
                logger.warning(f"GET_USERS failed, reading profile directory: {e}")

        if self.fallback is None:
            return self.directory.list_profiles()
        try:
            return self.directory.list_profiles()
        except Exception as e:
            logger.warning(f"Profile directory unavailable, using local directory: {e}")
            return self.fallback.list_profiles()

    def get_all_users(self) -> ServiceResult:
        return self.safe_execute("Loading users", self._list_users)

    def update_user_role(self, user_id: str, role: Union[Role, str], admin_email: str) -> ServiceResult:
        return self.safe_execute("Updating user role", self._update_role, user_id, role, admin_email)

    def _update_role(self, user_id: str, role: Union[Role, str], admin_email: str) -> ServiceResult:
        new_role = role if isinstance(role, Role) else Role(str(role).lower())
        profile = self._require(self.directory.update(user_id, {"role": new_role.value}), user_id)
        self._audit(admin_email, "UPDATE_ROLE", f"Updated role for {profile.email} to {new_role.value}")
        return ServiceResult.ok(profile, message="Role updated.")

    def update_user_status(
        self,
        user_id: str,
        status: Union[ProfileStatus, str],
        admin_email: str,
    ) -> ServiceResult:
        return self.safe_execute("Updating user status", self._update_status, user_id, status, admin_email)

    def _update_status(
        self,
        user_id: str,
        status: Union[ProfileStatus, str],
        admin_email: str,
    ) -> ServiceResult:
        new_status = status if isinstance(status, ProfileStatus) else ProfileStatus(str(status).lower())
        profile = self._require(self.directory.update(user_id, {"status": new_status.value}), user_id)
        self._audit(admin_email, "UPDATE_STATUS", f"Changed status for {profile.email} to {new_status.value}")
        return ServiceResult.ok(profile, message="Status updated.")

    def delete_user(self, user_id: str, admin_email: str) -> ServiceResult:
        return self.safe_execute("Deleting user", self._delete_user, user_id, admin_email)

    def _delete_user(self, user_id: str, admin_email: str) -> ServiceResult:
        profile = self._require(self.directory.find_by_id(user_id), user_id)
        if not self.directory.delete(user_id):
            raise NotFoundError(f"User {user_id} could not be deleted", key=user_id)
        self._audit(admin_email, "DELETE_USER", f"Deleted user {profile.email}")
        return ServiceResult.ok(profile, message="User deleted.")

    def get_admin_stats(self) -> ServiceResult:
        return self.safe_execute("Computing admin statistics", self._stats)

    def _stats(self) -> AdminStats:
        users = self._list_users()
        return AdminStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.status == ProfileStatus.ACTIVE),
            total_admins=sum(1 for u in users if u.role.is_admin),
            pending_users=sum(1 for u in users if u.status == ProfileStatus.PENDING),
        )

    @staticmethod
    def _require(profile: Optional[UserProfile], user_id: str) -> UserProfile:
        if profile is None:
            raise NotFoundError(f"User {user_id} not found", key=user_id)
        return profile

    def _audit(self, actor: str, action: str, details: str) -> None:
        if self.audit is not None:
            self.audit.record(actor, action, details)
