# =============================================================================
# fintrack_core/stores/base.py
# Store interfaces
# =============================================================================
"""
Abstract interfaces the services depend on.

Concrete implementations live beside this module (local cache, script
endpoint, Supabase). Tests substitute in-memory fakes.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from fintrack_core.models import AuditLogEntry, ReportRecord, UserProfile


class RecordStore(ABC):
    """A remote that can hold report records."""

    #: Short name used in logs and task names
    name: str = "store"

    #: Whether ``remove`` is part of this store's protocol
    supports_delete: bool = True

    @abstractmethod
    def fetch(self, record_id: str) -> Optional[Any]:
        """
        Return the payload stored under ``record_id`` or None when absent.

        Raises:
            RemoteUnreachableError: transport failure or unreadable response
        """

    @abstractmethod
    def store(self, record: ReportRecord) -> None:
        """Upsert ``record``. Raises RemoteUnreachableError on failure."""

    @abstractmethod
    def remove(self, record_id: str) -> None:
        """Delete ``record_id``. Raises RemoteUnreachableError on failure."""

    @abstractmethod
    def ping(self) -> None:
        """Cheap existence check. Raises on any failure."""

    def keep_alive(self) -> None:
        """Lightweight request that keeps an idle backend awake."""
        self.ping()


class ProfileDirectory(ABC):
    """Where user profiles live (relational ``profiles`` table or ``mock_users``)."""

    @abstractmethod
    def list_profiles(self) -> List[UserProfile]:
        ...

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def insert(self, profile: UserProfile, password_hash: Optional[str] = None) -> UserProfile:
        ...

    @abstractmethod
    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserProfile]:
        """Apply ``fields`` (column names) and return the updated profile, or None if absent."""

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        ...


class AuthBackend(ABC):
    """
    Identity provider used when no script endpoint handles authentication.

    Every method receives the already-hashed secret; implementations never
    see the raw password.
    """

    @abstractmethod
    def sign_in(self, email: str, password_hash: str) -> str:
        """Verify credentials and return the identity id. Raises RejectedError."""

    @abstractmethod
    def sign_up(self, email: str, password_hash: str) -> str:
        """Create an identity and return its id. Raises RejectedError."""

    @abstractmethod
    def sign_out(self) -> None:
        ...

    @abstractmethod
    def request_reset(self, email: str, redirect_url: str) -> str:
        """Start a reset flow; returns an acknowledgement message."""

    @abstractmethod
    def confirm_reset(self, email: str, token: str, password_hash: str) -> str:
        """Finish a reset flow; returns an acknowledgement message."""


class AuditSink(ABC):
    """Remote mirror for audit entries."""

    @abstractmethod
    def append_audit(self, entry: AuditLogEntry) -> None:
        ...

    @abstractmethod
    def list_audit(self, limit: int) -> List[AuditLogEntry]:
        """Newest first."""


class SettingsStore(ABC):
    """Remote holder of the system settings blob."""

    @abstractmethod
    def load_settings(self) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def save_settings(self, value: Dict[str, Any]) -> None:
        ...
