# =============================================================================
# fintrack_core/services/settings_service.py
# System settings blob and financial-year lifecycle
# =============================================================================
"""
SettingsService - one settings document shared by every client.

The document lives in Supabase ``system_settings`` under ``app_settings`` and
is mirrored in the local cache under ``system_settings``. Every change is a
read-modify-write of the whole document: the cache copy is replaced at once,
the remote upsert runs in the background, and the last writer wins.
"""

from __future__ import annotations
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from fintrack_core.logging import get_logger
from fintrack_core.models import SystemSettings, YearEntry, utc_now_iso
from fintrack_core.services.audit_pipeline import AuditPipeline
from fintrack_core.services.base_service import BaseService, ServiceResult
from fintrack_core.stores.base import SettingsStore
from fintrack_core.stores.local_cache import LocalCache
from fintrack_core.sync.dispatcher import BackgroundDispatcher

logger = get_logger(__name__)

SETTINGS_CACHE_KEY = "system_settings"


class SettingsService(BaseService):
    """
    Usage:
        settings = SettingsService(cache, remote=supabase_store, audit=audit)
        settings.add_year(2026, "admin@example.com")
        settings.set_active_year(2026, "admin@example.com")
    """

    def __init__(
        self,
        cache: LocalCache,
        remote: Optional[SettingsStore] = None,
        audit: Optional[AuditPipeline] = None,
        dispatcher: Optional[BackgroundDispatcher] = None,
        default_year: Optional[int] = None,
    ):
        super().__init__()
        self.cache = cache
        self.remote = remote
        self.audit = audit
        self.dispatcher = dispatcher or BackgroundDispatcher()
        self.default_year = default_year or datetime.now().year
        self._lock = threading.Lock()

    def get_settings(self) -> SystemSettings:
        """Remote document, else the cached copy, else defaults."""
        if self.remote is not None:
            try:
                value = self.remote.load_settings()
            except Exception as e:
                logger.warning(f"Remote settings unavailable, using local copy: {e}")
                value = None
            settings = self._parse(value, "remote")
            if settings is not None:
                self.cache.set(SETTINGS_CACHE_KEY, value)
                return settings

        settings = self._parse(self.cache.get(SETTINGS_CACHE_KEY), "cached")
        if settings is not None:
            return settings
        return SystemSettings(active_year=self.default_year)

    @staticmethod
    def _parse(value: Optional[Dict[str, Any]], source: str) -> Optional[SystemSettings]:
        if not value:
            return None
        try:
            return SystemSettings.from_dict(value)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed {source} settings: {e}")
            return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_year(self, year: int, actor: str) -> ServiceResult:
        """Append an inactive year; a year that already exists is refused."""
        return self.safe_execute(f"Adding year {year}", self._add_year, int(year), actor)

    def _add_year(self, year: int, actor: str) -> ServiceResult:
        settings = self.get_settings()
        if settings.find_year(year) is not None:
            return ServiceResult.fail(f"Year {year} already exists.", error_code="DUPLICATE_YEAR")

        settings.available_years.append(YearEntry(year=year, is_active=False, created_by=actor))
        settings.available_years.sort(key=lambda entry: entry.year)
        self._save(settings)
        self._audit(actor, "ADD_YEAR", f"Added new financial year: {year}")
        return ServiceResult.ok(settings, message=f"Year {year} added.")

    def set_active_year(self, year: int, actor: str) -> ServiceResult:
        """Make ``year`` the only active entry."""
        return self.safe_execute(f"Activating year {year}", self._set_active_year, int(year), actor)

    def _set_active_year(self, year: int, actor: str) -> ServiceResult:
        settings = self.get_settings()
        if settings.find_year(year) is None:
            return ServiceResult.fail(f"Year {year} has not been added.", error_code="UNKNOWN_YEAR")

        for entry in settings.available_years:
            entry.is_active = entry.year == year
        settings.active_year = year
        self._save(settings)
        self._audit(actor, "SET_ACTIVE_YEAR", f"Changed active year to {year}")
        return ServiceResult.ok(settings, message=f"Active year is now {year}.")

    def toggle_maintenance(self, enabled: bool, actor: str) -> ServiceResult:
        return self.safe_execute("Toggling maintenance mode", self._toggle_maintenance, bool(enabled), actor)

    def _toggle_maintenance(self, enabled: bool, actor: str) -> ServiceResult:
        settings = self.get_settings()
        settings.maintenance_mode = enabled
        self._save(settings)
        self._audit(actor, "MAINTENANCE_MODE", f"Toggled maintenance mode to {enabled}")
        state = "enabled" if enabled else "disabled"
        return ServiceResult.ok(settings, message=f"Maintenance mode {state}.")

    def _save(self, settings: SystemSettings) -> None:
        settings.last_updated = utc_now_iso()
        value = settings.to_dict()
        with self._lock:
            self.cache.set(SETTINGS_CACHE_KEY, value)
        if self.remote is not None:
            self.dispatcher.submit("settings:save", self.remote.save_settings, value)

    def _audit(self, actor: str, action: str, details: str) -> None:
        if self.audit is not None:
            self.audit.record(actor, action, details)
