# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from fintrack_core.config import StoreConfig
from fintrack_core.models import ReportRecord
from fintrack_core.services.audit_pipeline import AuditPipeline
from fintrack_core.stores.base import RecordStore
from fintrack_core.stores.local_cache import LocalCache
from fintrack_core.sync.dispatcher import BackgroundDispatcher


# =============================================================================
# TEST DOUBLES
# =============================================================================

class FakeRecordStore(RecordStore):
    """In-memory remote that records every call and can be told to fail."""

    def __init__(self, name: str = "fake", supports_delete: bool = True):
        self.name = name
        self.supports_delete = supports_delete
        self.records: Dict[str, Any] = {}
        self.fail_with: Optional[Exception] = None
        self.fetches: List[str] = []
        self.stored: List[ReportRecord] = []
        self.removed: List[str] = []
        self.pings = 0

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def fetch(self, record_id):
        self.fetches.append(record_id)
        self._maybe_fail()
        return self.records.get(record_id)

    def store(self, record):
        self._maybe_fail()
        self.stored.append(record)
        self.records[record.id] = record.payload

    def remove(self, record_id):
        self._maybe_fail()
        self.removed.append(record_id)
        self.records.pop(record_id, None)

    def ping(self):
        self.pings += 1
        self._maybe_fail()


class InlineDispatcher(BackgroundDispatcher):
    """Runs each task on the calling thread so tests see the result at once."""

    def submit(self, name, func, *args):
        with self._lock:
            self._stats.dispatched += 1
        self._run(name, func, args)
        return None


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def cache(tmp_path):
    """Fresh SQLite cache in a temp directory"""
    local_cache = LocalCache(tmp_path / "cache.db")
    yield local_cache
    local_cache.close()


@pytest.fixture
def make_store():
    """Factory for FakeRecordStore instances"""
    return FakeRecordStore


@pytest.fixture
def dispatcher():
    return InlineDispatcher()


@pytest.fixture
def audit(cache, dispatcher):
    """Audit pipeline with no remote sink"""
    return AuditPipeline(cache, dispatcher=dispatcher)


@pytest.fixture
def demo_config(tmp_path):
    return StoreConfig(cache_path=tmp_path / "cache.db")


@pytest.fixture
def supabase_config(tmp_path):
    return StoreConfig(
        supabase_url="https://abcd1234.supabase.co",
        supabase_key="test-anon-key",
        cache_path=tmp_path / "cache.db",
    )


@pytest.fixture
def script_config(tmp_path):
    return StoreConfig(
        script_url="https://script.google.com/macros/s/test-deployment/exec",
        cache_path=tmp_path / "cache.db",
    )


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit():
    """Mock Streamlit for testing"""
    import sys

    # Create mock streamlit module
    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.secrets = {}
    mock_st.cache_data = lambda f: f
    mock_st.cache_resource = lambda f: f

    # Store original and replace
    original_st = sys.modules.get('streamlit')
    sys.modules['streamlit'] = mock_st

    yield mock_st

    # Restore original
    if original_st:
        sys.modules['streamlit'] = original_st
    else:
        sys.modules.pop('streamlit', None)


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client
