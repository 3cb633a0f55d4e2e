# =============================================================================
# fintrack_core/errors/__init__.py
# Centralized Error Handling for the FinTrack persistence layer
# =============================================================================

from .exceptions import (
    FinTrackError,
    NotConfiguredError,
    RemoteUnreachableError,
    RejectedError,
    NotFoundError,
    RecordKeyError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "FinTrackError",
    "NotConfiguredError",
    "RemoteUnreachableError",
    "RejectedError",
    "NotFoundError",
    "RecordKeyError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
]
