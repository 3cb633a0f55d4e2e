# =============================================================================
# fintrack_core/errors/exceptions.py
# Exception Hierarchy for the store chain and credential flows
# =============================================================================

from typing import Optional, Dict, Any


class FinTrackError(Exception):
    """
    Base exception for all FinTrack persistence errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the caller can carry on (e.g. fall back to cache)
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "FT_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# STORE EXCEPTIONS
# =============================================================================

class NotConfiguredError(FinTrackError):
    """Raised when an operation needs a remote store that is not configured"""

    def __init__(self, message: str, store: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if store:
            details["store"] = store

        super().__init__(message=message, code="STORE_000", details=details, **kwargs)


class RemoteUnreachableError(FinTrackError):
    """Raised on transport failures, timeouts or unreadable remote responses"""

    def __init__(
        self,
        message: str,
        store: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if store:
            details["store"] = store
        if operation:
            details["operation"] = operation

        super().__init__(message=message, code="STORE_001", details=details, **kwargs)


class NotFoundError(FinTrackError):
    """Raised when a record or profile is absent from every store"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(message=message, code="STORE_404", details=details, **kwargs)


# =============================================================================
# AUTH EXCEPTIONS
# =============================================================================

class RejectedError(FinTrackError):
    """Raised when a remote explicitly refuses (bad credentials, duplicate, inactive)"""

    def __init__(self, message: str, email: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if email:
            details["email"] = email

        super().__init__(message=message, code="AUTH_001", details=details, **kwargs)


# =============================================================================
# INPUT / CONFIGURATION EXCEPTIONS
# =============================================================================

class RecordKeyError(FinTrackError, ValueError):
    """Raised when a report kind or date cannot form a record id"""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        date: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if kind:
            details["kind"] = kind
        if date:
            details["date"] = date

        super().__init__(message=message, code="DATA_001", details=details, **kwargs)


class ConfigurationError(FinTrackError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
