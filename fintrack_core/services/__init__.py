# =============================================================================
# fintrack_core/services/__init__.py
# Service Layer - the API surface UI code calls
# =============================================================================

from .base_service import BaseService, ServiceResult
from .report_repository import ReportRepository
from .credential_service import CredentialService, hash_secret
from .audit_pipeline import AuditPipeline
from .settings_service import SettingsService
from .admin_service import AdminService

__all__ = [
    "BaseService",
    "ServiceResult",
    "ReportRepository",
    "CredentialService",
    "hash_secret",
    "AuditPipeline",
    "SettingsService",
    "AdminService",
]
