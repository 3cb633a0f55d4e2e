# =============================================================================
# tests/unit/test_settings_service.py
# Unit Tests for SettingsService
# =============================================================================

import pytest
from unittest.mock import MagicMock

from fintrack_core.errors import RemoteUnreachableError
from fintrack_core.services.settings_service import SETTINGS_CACHE_KEY, SettingsService
from fintrack_core.stores.base import SettingsStore

ADMIN = "admin@example.com"


@pytest.fixture
def settings(cache, audit, dispatcher):
    return SettingsService(cache, audit=audit, dispatcher=dispatcher, default_year=2025)


def active_entries(result_settings):
    return [entry for entry in result_settings.available_years if entry.is_active]


class TestDefaults:
    def test_defaults_without_any_store(self, settings):
        current = settings.get_settings()

        assert current.active_year == 2025
        assert current.maintenance_mode is False
        assert current.available_years == []

    def test_cached_copy_used(self, settings, cache):
        cache.set(SETTINGS_CACHE_KEY, {"activeYear": 2024, "maintenanceMode": True, "availableYears": []})
        assert settings.get_settings().active_year == 2024


class TestYearLifecycle:
    """add_year / set_active_year"""

    def test_add_year_is_inactive(self, settings):
        result = settings.add_year(2026, ADMIN)

        assert result.success
        entry = result.data.find_year(2026)
        assert entry.is_active is False
        assert entry.created_by == ADMIN

    def test_duplicate_year_fails(self, settings):
        settings.add_year(2026, ADMIN)
        result = settings.add_year(2026, ADMIN)

        assert not result.success
        assert result.error_code == "DUPLICATE_YEAR"
        assert len(settings.get_settings().available_years) == 1

    def test_unknown_year_cannot_be_activated(self, settings):
        result = settings.set_active_year(2030, ADMIN)

        assert not result.success
        assert result.error_code == "UNKNOWN_YEAR"

    def test_exactly_one_active_year(self, settings):
        for year in (2024, 2025, 2026):
            settings.add_year(year, ADMIN)

        settings.set_active_year(2025, ADMIN)
        settings.set_active_year(2026, ADMIN)
        current = settings.get_settings()

        assert [e.year for e in active_entries(current)] == [2026]
        assert current.active_year == 2026

    def test_changes_are_audited(self, settings, audit):
        settings.add_year(2026, ADMIN)
        settings.set_active_year(2026, ADMIN)
        settings.toggle_maintenance(True, ADMIN)

        assert [e.action for e in audit.list()] == ["MAINTENANCE_MODE", "SET_ACTIVE_YEAR", "ADD_YEAR"]

    def test_last_updated_is_set(self, settings):
        settings.add_year(2026, ADMIN)
        assert settings.get_settings().last_updated is not None


class TestMaintenance:
    def test_toggle_persists(self, settings, cache):
        result = settings.toggle_maintenance(True, ADMIN)

        assert result.success
        assert result.message == "Maintenance mode enabled."
        assert cache.get(SETTINGS_CACHE_KEY)["maintenanceMode"] is True

        settings.toggle_maintenance(False, ADMIN)
        assert settings.get_settings().maintenance_mode is False


class TestRemoteSettings:
    """Supabase system_settings document"""

    @pytest.fixture
    def remote(self):
        store = MagicMock(spec=SettingsStore)
        store.load_settings.return_value = {
            "activeYear": 2024,
            "maintenanceMode": False,
            "availableYears": [{"year": 2024, "isActive": True, "createdAt": "", "createdBy": "x"}],
        }
        return store

    def test_remote_wins_and_is_cached(self, cache, dispatcher, remote):
        service = SettingsService(cache, remote=remote, dispatcher=dispatcher)

        assert service.get_settings().active_year == 2024
        assert cache.get(SETTINGS_CACHE_KEY)["activeYear"] == 2024

    def test_save_reaches_remote(self, cache, dispatcher, remote):
        service = SettingsService(cache, remote=remote, dispatcher=dispatcher)
        service.add_year(2025, ADMIN)

        saved = remote.save_settings.call_args[0][0]
        assert [y["year"] for y in saved["availableYears"]] == [2024, 2025]

    def test_unreachable_remote_falls_back_to_cache(self, cache, dispatcher, remote):
        cache.set(SETTINGS_CACHE_KEY, {"activeYear": 2023, "availableYears": []})
        remote.load_settings.side_effect = RemoteUnreachableError("down", store="supabase")
        service = SettingsService(cache, remote=remote, dispatcher=dispatcher)

        assert service.get_settings().active_year == 2023

    def test_malformed_remote_ignored(self, cache, dispatcher, remote):
        remote.load_settings.return_value = {"maintenanceMode": True}
        service = SettingsService(cache, remote=remote, dispatcher=dispatcher, default_year=2027)

        assert service.get_settings().active_year == 2027
