# =============================================================================
# fintrack_core/stores/local_directory.py
# Demo-mode user directory kept in the local cache
# =============================================================================
"""
Local profile directory and auth backend used when no remote is configured.

Profiles live as a JSON list under the ``mock_users`` cache key. This is a
development convenience: hashes sit in a local file and any process with file
access can edit roles. Never use it for a real deployment.
"""

from __future__ import annotations
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fintrack_core.errors import RejectedError
from fintrack_core.logging import get_logger
from fintrack_core.models import UserProfile
from fintrack_core.stores.base import AuthBackend, ProfileDirectory
from fintrack_core.stores.local_cache import LocalCache

logger = get_logger(__name__)

USERS_KEY = "mock_users"
PASSWORD_FIELD = "passwordHash"

# camelCase keys used by cached entries for the column names services pass in
FIELD_ALIASES = {"created_at": "createdAt", "last_login": "lastLogin"}



class LocalProfileDirectory(ProfileDirectory):
    """
    Profiles stored in the local cache.

    Every change rewrites the whole ``mock_users`` list, so mutations are
    serialized on ``_lock``. One instance is shared by all sessions of a
    cached backend.
    """

    def __init__(self, cache: LocalCache):
        self.cache = cache
        self._lock = threading.RLock()

    def _load(self) -> List[Dict[str, Any]]:
        return list(self.cache.get(USERS_KEY) or [])

    def _save(self, users: List[Dict[str, Any]]) -> None:
        self.cache.set(USERS_KEY, users)

    def find_raw(self, email: str) -> Optional[Dict[str, Any]]:
        """Cached entry including the stored password hash."""
        wanted = email.strip().lower()
        for user in self._load():
            if str(user.get("email", "")).lower() == wanted:
                return user
        return None

    def list_profiles(self) -> List[UserProfile]:
        return [UserProfile.from_dict(user) for user in self._load()]

    def find_by_email(self, email: str) -> Optional[UserProfile]:
        raw = self.find_raw(email)
        return UserProfile.from_dict(raw) if raw else None

    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        for user in self._load():
            if str(user.get("id")) == str(user_id):
                return UserProfile.from_dict(user)
        return None

    def count(self) -> int:
        return len(self._load())

    def insert(self, profile: UserProfile, password_hash: Optional[str] = None) -> UserProfile:
        entry = profile.to_dict()
        if password_hash:
            entry[PASSWORD_FIELD] = password_hash
        with self._lock:
            users = self._load()
            users.append(entry)
            self._save(users)
        return profile

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserProfile]:
        with self._lock:
            users = self._load()
            for user in users:
                if str(user.get("id")) == str(user_id):
                    for name, value in fields.items():
                        user[FIELD_ALIASES.get(name, name)] = value
                    self._save(users)
                    return UserProfile.from_dict(user)
        return None

    def delete(self, user_id: str) -> bool:
        with self._lock:
            users = self._load()
            remaining = [user for user in users if str(user.get("id")) != str(user_id)]
            if len(remaining) == len(users):
                return False
            self._save(remaining)
        return True

    def set_password_hash(self, email: str, password_hash: str) -> bool:
        wanted = email.strip().lower()
        with self._lock:
            users = self._load()
            for user in users:
                if str(user.get("email", "")).lower() == wanted:
                    user[PASSWORD_FIELD] = password_hash
                    self._save(users)
                    return True
        return False


class LocalAuthBackend(AuthBackend):
    """Credential checks against the local directory."""

    def __init__(self, directory: LocalProfileDirectory):
        self.directory = directory

    def sign_in(self, email: str, password_hash: str) -> str:
        user = self.directory.find_raw(email)
        if user is None:
            raise RejectedError("User not found (demo mode).", email=email)
        stored = user.get(PASSWORD_FIELD)
        if stored and stored != password_hash:
            raise RejectedError("Invalid email or password.", email=email)
        return str(user["id"])

    def sign_up(self, email: str, password_hash: str) -> str:
        stamp = int(datetime.now().timestamp() * 1000)
        return f"u_{stamp}_{uuid.uuid4().hex[:6]}"

    def sign_out(self) -> None:
        logger.debug("Local session cleared")

    def request_reset(self, email: str, redirect_url: str) -> str:
        logger.info(f"Demo mode: reset link for {email} would point to {redirect_url}")
        return "Reset link sent (simulated)."

    def confirm_reset(self, email: str, token: str, password_hash: str) -> str:
        if not self.directory.set_password_hash(email, password_hash):
            raise RejectedError("User not found (demo mode).", email=email)
        return "Password updated."
