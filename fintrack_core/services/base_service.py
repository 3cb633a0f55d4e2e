# =============================================================================
# fintrack_core/services/base_service.py
# Shared plumbing for the settings, admin and repository services
# =============================================================================
"""
ServiceResult and BaseService.

Admin-facing operations (add a year, change a role, toggle maintenance)
report back through a ``ServiceResult`` instead of raising, so a dashboard
page can show ``result.message`` or ``result.error`` without its own
try/except. Flows whose callers need the exception type (login, register)
raise instead and do not go through ``safe_execute``.
"""

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fintrack_core.errors import FinTrackError, handle_error
from fintrack_core.logging import LogContext, get_logger


@dataclass
class ServiceResult:
    """
    Outcome of an admin operation.

    ``message`` carries the acknowledgement shown on success
    ("Maintenance mode enabled."); ``error`` and ``error_code`` carry the
    failure ("Year 2025 already exists.", ``DUPLICATE_YEAR``). A result is
    truthy only when it succeeded.
    """
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls,
        data: Any = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        return cls(success=True, data=data, message=message, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = "UNKNOWN",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        return cls(success=False, error=error, error_code=error_code, metadata=metadata)

    @classmethod
    def from_exception(cls, e: Exception) -> ServiceResult:
        """Failed result keeping the FinTrack error code and details when present."""
        if not isinstance(e, FinTrackError):
            return cls.fail(str(e), error_code="EXCEPTION")
        return cls.fail(e.message, error_code=e.code, metadata=e.details)


class BaseService(ABC):
    """
    Common base for FinTrack services: a per-class logger, timed operation
    logging and exception-to-result conversion.

    Usage:
        class SettingsService(BaseService):
            def toggle_maintenance(self, actor: str) -> ServiceResult:
                return self.safe_execute("Toggling maintenance", self._toggle, actor)
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def log_operation(self, operation: str) -> LogContext:
        """Timed log block, e.g. ``with self.log_operation("Adding year 2026"):``"""
        return LogContext(self.logger, operation)

    def safe_execute(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> ServiceResult:
        """
        Run ``func`` and fold its outcome into a ServiceResult.

        A ServiceResult returned by ``func`` passes through untouched; any
        other return value becomes ``ServiceResult.ok(value)``. FinTrack
        errors keep their code, anything else is logged with a traceback.
        """
        with self.log_operation(operation):
            try:
                outcome = func(*args, **kwargs)
            except FinTrackError as e:
                handle_error(e, show_user_message=False)
                return ServiceResult.from_exception(e)
            except Exception as e:
                self.logger.error(f"{operation} failed: {e}", exc_info=True)
                return ServiceResult.fail(str(e))

        if isinstance(outcome, ServiceResult):
            return outcome
        return ServiceResult.ok(outcome)
