# =============================================================================
# fintrack_core/services/credential_service.py
# Login, registration, password reset and first-user bootstrap
# =============================================================================
"""
CredentialService - authentication against whichever backend is configured.

Resolution order for every flow:

    1. Script endpoint (LOGIN / REGISTER / RESET_*), verdict trusted as-is
    2. Supabase native auth + ``profiles`` table
    3. Local demo directory (``mock_users`` in the cache)

The secret is hashed before it leaves this module, so no backend ever sees
the raw password. The hash is a bare SHA-256 hex digest with no salt and no
stretching; it has to match the hashes already stored by existing
deployments, and it is weak against offline guessing.

Role bootstrap is count-then-insert: the first profile becomes
``superadmin``, every later one ``viewer``. The two steps are not atomic, so
two registrations racing on an empty directory can both become superadmin.
"""

from __future__ import annotations
import hashlib
import threading
from typing import Dict, Optional

from fintrack_core.config import MODE_DEMO, MODE_SCRIPT, StoreConfig
from fintrack_core.errors import FinTrackError, NotConfiguredError, RejectedError
from fintrack_core.logging import get_logger
from fintrack_core.models import AttemptState, ProfileStatus, Role, UserProfile, utc_now_iso
from fintrack_core.services.audit_pipeline import AuditPipeline
from fintrack_core.services.base_service import BaseService
from fintrack_core.stores.base import AuthBackend, ProfileDirectory
from fintrack_core.stores.script_endpoint import ScriptEndpointClient

logger = get_logger(__name__)

RESET_PATH = "/#/reset-password"
DEMO_ADMIN_ID = "dev_admin"


def hash_secret(secret: str) -> str:
    """Lowercase hex SHA-256 of the UTF-8 encoded secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def normalize_email(identifier: str) -> str:
    return (identifier or "").strip().lower()


class CredentialService(BaseService):
    """
    Usage:
        service = CredentialService(directory, auth, audit=audit, config=config)
        profile = service.register("ana@example.com", "s3cret", "Ana")
        profile = service.login("ana@example.com", "s3cret")
    """

    def __init__(
        self,
        directory: ProfileDirectory,
        auth: AuthBackend,
        audit: Optional[AuditPipeline] = None,
        script: Optional[ScriptEndpointClient] = None,
        config: Optional[StoreConfig] = None,
    ):
        super().__init__()
        self.directory = directory
        self.auth = auth
        self.audit = audit
        self.script = script
        self.config = config or StoreConfig()
        self._attempt_states: Dict[str, AttemptState] = {}
        self._state_lock = threading.Lock()

        if self.config.mode == MODE_SCRIPT and self.script is None:
            raise NotConfiguredError("Script endpoint configured but no client supplied", store="script")

    hash_secret = staticmethod(hash_secret)

    @property
    def mode(self) -> str:
        return self.config.mode

    def attempt_state(self, identifier: str) -> AttemptState:
        """
        State of the latest login attempt for one identity.

        Tracked per normalized email because one service instance is shared
        by every session of a cached backend.
        """
        with self._state_lock:
            return self._attempt_states.get(normalize_email(identifier), AttemptState.IDLE)

    def _set_attempt_state(self, email: str, state: AttemptState) -> None:
        with self._state_lock:
            if state == AttemptState.IDLE:
                self._attempt_states.pop(email, None)
            else:
                self._attempt_states[email] = state

    # =========================================================================
    # LOGIN / LOGOUT
    # =========================================================================

    def login(self, identifier: str, secret: str) -> UserProfile:
        """
        Authenticate and return the caller's profile.

        Raises:
            RejectedError: bad credentials, unknown user or inactive account
            RemoteUnreachableError: the backend could not be reached
        """
        email = normalize_email(identifier)
        self._set_attempt_state(email, AttemptState.VERIFYING)
        try:
            if not email or not secret:
                raise RejectedError("Email and password are required.", email=email)

            profile = self._authenticate(email, secret)
            if not profile.is_active:
                self._end_session()
                raise RejectedError("Account is inactive.", email=email)
        except Exception:
            self._set_attempt_state(email, AttemptState.REJECTED)
            raise

        self._set_attempt_state(email, AttemptState.AUTHENTICATED)
        logger.info(f"User logged in: {profile.email} ({profile.role.value})")
        self._audit(profile.email, "LOGIN", "User logged in")
        return profile

    def _authenticate(self, email: str, secret: str) -> UserProfile:
        password_hash = hash_secret(secret)

        if self.mode == MODE_SCRIPT:
            return self.script.login(email, password_hash)

        if self.mode == MODE_DEMO and self._is_demo_bypass(email, secret):
            logger.warning("Demo bypass credential used")
            return UserProfile(
                id=DEMO_ADMIN_ID,
                email=email,
                name="System Admin",
                role=Role.SUPERADMIN,
                status=ProfileStatus.ACTIVE,
                last_login=utc_now_iso(),
            )

        user_id = self.auth.sign_in(email, password_hash)
        profile = self.directory.find_by_id(user_id)
        if profile is None:
            # Identity exists but its profile row was never written
            profile = self._provision(user_id, email, email.split("@")[0])
        if not profile.is_active:
            return profile

        now = utc_now_iso()
        updated = self.directory.update(user_id, {"last_login": now})
        if updated is None:
            profile.last_login = now
            return profile
        return updated

    def _is_demo_bypass(self, email: str, secret: str) -> bool:
        return email == normalize_email(self.config.demo_email) and secret == self.config.demo_password

    def logout(self, profile: Optional[UserProfile] = None) -> None:
        if profile is not None:
            self._audit(profile.email, "LOGOUT", "User logged out")
            self._set_attempt_state(normalize_email(profile.email), AttemptState.IDLE)
        self._end_session()

    def _end_session(self) -> None:
        try:
            self.auth.sign_out()
        except FinTrackError as e:
            logger.warning(f"Sign-out failed: {e}")

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, identifier: str, secret: str, display_name: str) -> UserProfile:
        """
        Create an identity and its profile.

        Raises:
            RejectedError: missing fields or email already registered
        """
        email = normalize_email(identifier)
        name = (display_name or "").strip()
        if not email or not secret or not name:
            raise RejectedError("Email, password and name are required.", email=email)

        password_hash = hash_secret(secret)

        if self.mode == MODE_SCRIPT:
            profile = self.script.register(email, password_hash, name)
        else:
            if self.directory.find_by_email(email) is not None:
                raise RejectedError("Email is already registered.", email=email)
            user_id = self.auth.sign_up(email, password_hash)
            profile = self._provision(user_id, email, name, password_hash)

        self._audit(email, "REGISTER", f"Registered as {profile.role.value}")
        return profile

    def _provision(
        self,
        user_id: str,
        email: str,
        name: str,
        password_hash: Optional[str] = None,
    ) -> UserProfile:
        """Insert a profile whose role depends on how many exist already."""
        existing = self.directory.count()
        role = Role.SUPERADMIN if existing == 0 else Role.VIEWER
        profile = UserProfile(
            id=user_id,
            email=email,
            name=name,
            role=role,
            status=ProfileStatus.ACTIVE,
            created_at=utc_now_iso(),
        )
        self.directory.insert(profile, password_hash)
        logger.info(f"Provisioned profile for {email} as {role.value}")
        return profile

    # =========================================================================
    # PASSWORD RESET
    # =========================================================================

    def reset_link(self, origin: Optional[str] = None) -> str:
        base = (origin or self.config.app_origin).rstrip("/")
        return f"{base}{RESET_PATH}"

    def reset_password_request(self, identifier: str, origin: Optional[str] = None) -> str:
        """Send a reset link; returns the acknowledgement message."""
        email = normalize_email(identifier)
        if not email:
            raise RejectedError("Email is required.")

        link = self.reset_link(origin)
        if self.mode == MODE_SCRIPT:
            return self.script.request_reset(email, link)
        return self.auth.request_reset(email, link)

    def confirm_reset(self, identifier: str, token: str, new_secret: str) -> str:
        """Finish a reset with the emailed token; returns the acknowledgement message."""
        email = normalize_email(identifier)
        if not email or not new_secret:
            raise RejectedError("Email and new password are required.", email=email)

        password_hash = hash_secret(new_secret)
        if self.mode == MODE_SCRIPT:
            message = self.script.confirm_reset(email, token, password_hash)
        else:
            message = self.auth.confirm_reset(email, token, password_hash)
        self._audit(email, "RESET_PASSWORD", "Password reset completed")
        return message

    def _audit(self, email: str, action: str, details: str) -> None:
        if self.audit is not None:
            self.audit.record(email, action, details)
