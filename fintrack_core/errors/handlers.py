# =============================================================================
# fintrack_core/errors/handlers.py
# Error Handling Utilities for the FinTrack persistence layer
# =============================================================================

from __future__ import annotations
import traceback
from typing import Optional, Callable, TypeVar

from fintrack_core.logging import get_logger
from .exceptions import FinTrackError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    show_user_message: bool = False,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        show_user_message: Whether to display the message through ``st.error``
            (only meaningful inside a running Streamlit page)
        log_error: Whether to log the error
        user_message: Custom message to show user (uses error message if None)

    Returns:
        The message that was (or would have been) shown to the user
    """
    if isinstance(error, FinTrackError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(f"[{code}] {message}", extra={"details": details})

    if show_user_message:
        import streamlit as st

        if recoverable:
            st.error(f"Error: {message}")
        else:
            st.error(f"Critical Error: {message}. Please contact support.")

    return message


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Usage:
        users = safe_execute(admin.list_profiles, default=[], error_message="Could not load users")
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Context manager that logs failures of a best-effort operation.

    Usage:
        with ErrorContext("Mirroring audit entry", recoverable=True):
            store.append_audit(entry)
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            if not issubclass(exc_type, Exception):
                return False
            self.error = exc_val
            handle_error(exc_val, user_message=f"Error during: {self.operation}: {exc_val}")
            # Suppress exception if recoverable
            return self.recoverable

        logger.debug(f"Completed: {self.operation}")
        return False
