# =============================================================================
# fintrack_core/stores/__init__.py
# Local and remote stores behind the service layer
# =============================================================================

from fintrack_core.stores.base import (
    AuditSink,
    AuthBackend,
    ProfileDirectory,
    RecordStore,
    SettingsStore,
)
from fintrack_core.stores.local_cache import LocalCache
from fintrack_core.stores.local_directory import LocalAuthBackend, LocalProfileDirectory
from fintrack_core.stores.script_endpoint import ScriptEndpointClient
from fintrack_core.stores.supabase_store import (
    SupabaseAuthBackend,
    SupabaseProfileDirectory,
    SupabaseStore,
    get_supabase_client,
)

__all__ = [
    # Interfaces
    "AuditSink",
    "AuthBackend",
    "ProfileDirectory",
    "RecordStore",
    "SettingsStore",
    # Local
    "LocalCache",
    "LocalAuthBackend",
    "LocalProfileDirectory",
    # Remote Store A
    "ScriptEndpointClient",
    # Remote Store B
    "SupabaseAuthBackend",
    "SupabaseProfileDirectory",
    "SupabaseStore",
    "get_supabase_client",
]
