# =============================================================================
# fintrack_core/stores/supabase_store.py
# Remote Store B - hosted relational store (Supabase)
# =============================================================================
"""
Supabase-backed implementations of the store interfaces.

Tables (see ``scripts/create_tables.sql``):
    profiles(id, email, name, role, status, created_at, last_login)
    reports(id PK, type, year, date, data JSON)
    system_settings(key PK, value JSON)
    audit_logs(id, user_email, action, details, timestamp)

Every library exception is re-raised as one of the package's typed errors so
callers never depend on supabase/postgrest/httpx exception classes.
"""

from __future__ import annotations
import threading
from typing import Any, Dict, List, Optional

import httpx

from fintrack_core.errors import RejectedError, RemoteUnreachableError
from fintrack_core.logging import get_logger
from fintrack_core.models import AuditLogEntry, ReportRecord, UserProfile
from fintrack_core.stores.base import (
    AuditSink,
    AuthBackend,
    ProfileDirectory,
    RecordStore,
    SettingsStore,
)

logger = get_logger(__name__)

REPORTS_TABLE = "reports"
PROFILES_TABLE = "profiles"
SETTINGS_TABLE = "system_settings"
AUDIT_TABLE = "audit_logs"
SETTINGS_KEY = "app_settings"

_client_lock = threading.Lock()
_clients: Dict[tuple, Any] = {}


def get_supabase_client(url: str, key: str):
    """
    Create (once per url/key) and return a Supabase client.

    Returns:
        supabase.Client
    """
    cache_key = (url, key)
    with _client_lock:
        if cache_key not in _clients:
            from supabase import create_client

            _clients[cache_key] = create_client(url, key)
            logger.info("Supabase client initialised")
        return _clients[cache_key]


def execute_query(query, operation: str):
    """Run a postgrest query, mapping any failure to RemoteUnreachableError."""
    try:
        return query.execute()
    except Exception as e:
        raise RemoteUnreachableError(
            f"Supabase {operation} failed: {e}",
            store="supabase",
            operation=operation,
        ) from e


def _is_transport_error(error: Exception) -> bool:
    """Network-level failures, as opposed to the server saying no."""
    if isinstance(error, (httpx.TransportError, TimeoutError, ConnectionError)):
        return True
    # supabase-auth wraps network failures in a retryable error type
    return type(error).__name__ == "AuthRetryableError"


class SupabaseStore(RecordStore, AuditSink, SettingsStore):
    """
    Report, audit and settings access through one Supabase client.

    Usage:
        store = SupabaseStore(get_supabase_client(url, key))
        store.fetch("financing_2025")
    """

    name = "supabase"

    def __init__(self, client):
        self.client = client

    # =========================================================================
    # RECORD STORE
    # =========================================================================

    def fetch(self, record_id: str) -> Optional[Any]:
        response = execute_query(
            self.client.table(REPORTS_TABLE).select("data").eq("id", record_id).limit(1),
            "fetch report",
        )
        rows = response.data or []
        if rows and rows[0].get("data") is not None:
            return rows[0]["data"]
        return None

    def store(self, record: ReportRecord) -> None:
        execute_query(self.client.table(REPORTS_TABLE).upsert(record.to_row()), "upsert report")

    def remove(self, record_id: str) -> None:
        execute_query(self.client.table(REPORTS_TABLE).delete().eq("id", record_id), "delete report")

    def ping(self) -> None:
        execute_query(
            self.client.table(PROFILES_TABLE).select("id", count="exact", head=True),
            "ping",
        )

    def keep_alive(self) -> None:
        execute_query(self.client.table(PROFILES_TABLE).select("id").limit(1), "keep-alive")

    # =========================================================================
    # AUDIT SINK
    # =========================================================================

    def append_audit(self, entry: AuditLogEntry) -> None:
        execute_query(self.client.table(AUDIT_TABLE).insert(entry.to_row()), "insert audit log")

    def list_audit(self, limit: int) -> List[AuditLogEntry]:
        response = execute_query(
            self.client.table(AUDIT_TABLE).select("*").order("timestamp", desc=True).limit(limit),
            "list audit logs",
        )
        return [AuditLogEntry.from_dict(row) for row in response.data or []]

    # =========================================================================
    # SETTINGS STORE
    # =========================================================================

    def load_settings(self) -> Optional[Dict[str, Any]]:
        response = execute_query(
            self.client.table(SETTINGS_TABLE).select("value").eq("key", SETTINGS_KEY).limit(1),
            "load settings",
        )
        rows = response.data or []
        return rows[0].get("value") if rows else None

    def save_settings(self, value: Dict[str, Any]) -> None:
        execute_query(
            self.client.table(SETTINGS_TABLE).upsert({"key": SETTINGS_KEY, "value": value}),
            "save settings",
        )


class SupabaseProfileDirectory(ProfileDirectory):
    """The ``profiles`` table."""

    def __init__(self, client):
        self.client = client

    def _table(self):
        return self.client.table(PROFILES_TABLE)

    def _first(self, query, operation: str) -> Optional[UserProfile]:
        rows = execute_query(query.limit(1), operation).data or []
        return UserProfile.from_dict(rows[0]) if rows else None

    def list_profiles(self) -> List[UserProfile]:
        response = execute_query(self._table().select("*").order("created_at"), "list profiles")
        return [UserProfile.from_dict(row) for row in response.data or []]

    def find_by_email(self, email: str) -> Optional[UserProfile]:
        return self._first(self._table().select("*").eq("email", email), "find profile")

    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        return self._first(self._table().select("*").eq("id", user_id), "find profile")

    def count(self) -> int:
        response = execute_query(
            self._table().select("id", count="exact", head=True),
            "count profiles",
        )
        return int(response.count or 0)

    def insert(self, profile: UserProfile, password_hash: Optional[str] = None) -> UserProfile:
        # Credentials belong to Supabase auth, never to the profiles row
        execute_query(self._table().insert(profile.to_row()), "insert profile")
        return profile

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserProfile]:
        response = execute_query(self._table().update(fields).eq("id", user_id), "update profile")
        rows = response.data or []
        return UserProfile.from_dict(rows[0]) if rows else None

    def delete(self, user_id: str) -> bool:
        response = execute_query(self._table().delete().eq("id", user_id), "delete profile")
        return bool(response.data)


class SupabaseAuthBackend(AuthBackend):
    """Supabase native auth, fed with the client-side password hash."""

    name = "supabase-auth"

    def __init__(self, client):
        self.client = client

    def _call(self, operation: str, func, *args, email: Optional[str] = None):
        try:
            return func(*args)
        except Exception as e:
            if _is_transport_error(e):
                raise RemoteUnreachableError(
                    f"Supabase auth {operation} failed: {e}",
                    store=self.name,
                    operation=operation,
                ) from e
            raise RejectedError(str(e) or f"Supabase auth {operation} was rejected", email=email) from e

    def sign_in(self, email: str, password_hash: str) -> str:
        response = self._call(
            "sign in",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password_hash},
            email=email,
        )
        if response is None or response.user is None:
            raise RejectedError("Invalid email or password.", email=email)
        return str(response.user.id)

    def sign_up(self, email: str, password_hash: str) -> str:
        response = self._call(
            "sign up",
            self.client.auth.sign_up,
            {"email": email, "password": password_hash},
            email=email,
        )
        if response is None or response.user is None:
            raise RejectedError("Registration was not accepted.", email=email)
        return str(response.user.id)

    def sign_out(self) -> None:
        self._call("sign out", self.client.auth.sign_out)

    def request_reset(self, email: str, redirect_url: str) -> str:
        self._call(
            "reset request",
            self.client.auth.reset_password_for_email,
            email,
            {"redirect_to": redirect_url},
            email=email,
        )
        return "Reset link sent."

    def confirm_reset(self, email: str, token: str, password_hash: str) -> str:
        self._call(
            "verify reset token",
            self.client.auth.verify_otp,
            {"email": email, "token": token, "type": "recovery"},
            email=email,
        )
        self._call("update password", self.client.auth.update_user, {"password": password_hash}, email=email)
        return "Password updated."
