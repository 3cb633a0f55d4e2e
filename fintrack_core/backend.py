# =============================================================================
# fintrack_core/backend.py
# Composition root - wires stores and services from one StoreConfig
# =============================================================================
"""
``build_backend`` turns a StoreConfig into ready-to-use services:

    StoreConfig
        |
        +-- script_url set     -> ScriptEndpointClient     (Remote Store A)
        +-- supabase url/key   -> SupabaseStore + directory + auth (Remote Store B)
        +-- always             -> LocalCache (+ local directory/auth in demo mode)

UI pages should call ``get_cached_backend()`` so one Backend (and one
heartbeat) is shared across Streamlit sessions.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from typing import List, Optional

import streamlit as st

from fintrack_core.config import StoreConfig, load_config
from fintrack_core.logging import get_logger
from fintrack_core.services import (
    AdminService,
    AuditPipeline,
    CredentialService,
    ReportRepository,
    SettingsService,
)
from fintrack_core.stores import (
    LocalAuthBackend,
    LocalCache,
    LocalProfileDirectory,
    RecordStore,
    ScriptEndpointClient,
    SupabaseAuthBackend,
    SupabaseProfileDirectory,
    SupabaseStore,
    get_supabase_client,
)
from fintrack_core.sync import BackgroundDispatcher, ConnectivityMonitor, FailureObserver, HeartbeatHandle

logger = get_logger(__name__)


@dataclass
class Backend:
    """Everything the UI layer is allowed to talk to."""
    config: StoreConfig
    cache: LocalCache
    dispatcher: BackgroundDispatcher
    monitor: ConnectivityMonitor
    reports: ReportRepository
    credentials: CredentialService
    audit: AuditPipeline
    settings: SettingsService
    admin: AdminService
    script: Optional[ScriptEndpointClient] = None
    supabase: Optional[SupabaseStore] = None
    heartbeat: Optional[HeartbeatHandle] = field(default=None, repr=False)

    @property
    def mode(self) -> str:
        return self.config.mode

    def start_heartbeat(self, interval_seconds: Optional[float] = None) -> HeartbeatHandle:
        if self.heartbeat is None or not self.heartbeat.is_running:
            self.heartbeat = self.monitor.start_heartbeat(interval_seconds or self.config.heartbeat_interval)
        return self.heartbeat

    def shutdown(self, timeout: float = 10.0) -> bool:
        """Stop the heartbeat and wait for in-flight remote writes."""
        if self.heartbeat is not None:
            self.heartbeat.stop()
            self.heartbeat = None
        finished = self.dispatcher.join(timeout)
        if not finished:
            logger.warning(f"{self.dispatcher.pending_count} background writes still running at shutdown")
        self.cache.close()
        return finished


def build_backend(
    config: Optional[StoreConfig] = None,
    on_sync_failure: Optional[FailureObserver] = None,
    supabase_client=None,
) -> Backend:
    """
    Create every store and service for ``config``.

    Args:
        config: Explicit configuration (default: ``load_config()``)
        on_sync_failure: Called with (task name, exception) when a
            background remote write fails
        supabase_client: Pre-built client, mostly for tests
    """
    config = config or load_config()
    cache = LocalCache(config.cache_path)
    dispatcher = BackgroundDispatcher(on_failure=on_sync_failure)

    script = None
    if config.script_configured:
        script = ScriptEndpointClient(config.script_url, timeout=config.request_timeout)

    supabase = None
    local_directory = LocalProfileDirectory(cache)
    directory = local_directory
    auth = LocalAuthBackend(local_directory)
    if config.supabase_configured:
        client = supabase_client or get_supabase_client(config.supabase_url, config.supabase_key)
        supabase = SupabaseStore(client)
        directory = SupabaseProfileDirectory(client)
        auth = SupabaseAuthBackend(client)

    remotes: List[RecordStore] = [store for store in (script, supabase) if store is not None]

    audit = AuditPipeline(cache, sink=supabase, dispatcher=dispatcher)
    backend = Backend(
        config=config,
        cache=cache,
        dispatcher=dispatcher,
        monitor=ConnectivityMonitor(
            primary=remotes[0] if remotes else None,
            keep_alive_target=supabase,
        ),
        reports=ReportRepository(cache, remotes=remotes, dispatcher=dispatcher),
        credentials=CredentialService(directory, auth, audit=audit, script=script, config=config),
        audit=audit,
        settings=SettingsService(
            cache,
            remote=supabase,
            audit=audit,
            dispatcher=dispatcher,
            default_year=config.default_year,
        ),
        admin=AdminService(
            directory,
            audit=audit,
            script=script,
            fallback=local_directory if directory is not local_directory else None,
        ),
        script=script,
        supabase=supabase,
    )
    logger.info(f"Backend ready (mode: {config.mode}, remotes: {[r.name for r in remotes] or 'none'})")
    return backend


_backend: Optional[Backend] = None
_backend_lock = threading.Lock()


def get_backend() -> Backend:
    """Process-wide Backend built from ``load_config()`` on first use."""
    global _backend
    with _backend_lock:
        if _backend is None:
            _backend = build_backend()
        return _backend


def reset_backend() -> None:
    """Shut down and forget the process-wide Backend."""
    global _backend
    with _backend_lock:
        if _backend is not None:
            _backend.shutdown()
        _backend = None


@st.cache_resource
def get_cached_backend() -> Backend:
    """
    Backend shared across Streamlit sessions, with the heartbeat running.
    """
    backend = get_backend()
    backend.start_heartbeat()
    return backend
