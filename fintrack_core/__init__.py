# =============================================================================
# fintrack_core/__init__.py
# Persistence and sync layer for the FinTrack reporting dashboard
# =============================================================================
"""
Architecture:

    UI pages
       |
    Backend (backend.py)  <- StoreConfig (config.py)
       |
       +-- ReportRepository   get/put/delete      A -> B -> cache
       +-- CredentialService  login/register/reset
       +-- AuditPipeline      50-entry local ring + Supabase audit_logs
       +-- SettingsService    settings blob + year lifecycle
       +-- AdminService       user administration
       +-- ConnectivityMonitor  probe + heartbeat
       |
    stores/   LocalCache (SQLite) | ScriptEndpointClient (A) | Supabase* (B)

Import ``fintrack_core.backend`` for ``build_backend`` / ``get_cached_backend``.
"""

__version__ = "1.0.0"
