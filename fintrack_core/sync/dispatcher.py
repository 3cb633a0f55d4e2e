# =============================================================================
# fintrack_core/sync/dispatcher.py
# One-shot background tasks for remote write legs
# =============================================================================
"""
BackgroundDispatcher - runs each remote write once on its own daemon thread.

There is no queue, no retry and no cancellation: a task either lands or its
failure is logged and handed to the failure observer. Tasks are unordered
with respect to each other, so two writes to the same record can reach the
remote in either order.
"""

from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from fintrack_core.errors import ErrorContext
from fintrack_core.logging import get_logger

logger = get_logger(__name__)

FailureObserver = Callable[[str, Exception], None]


@dataclass
class DispatchStats:
    """Counters for the status display."""
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    last_failure: Optional[str] = None
    last_failure_at: Optional[datetime] = None


class BackgroundDispatcher:
    """
    Fire-and-forget task runner.

    Usage:
        dispatcher = BackgroundDispatcher(on_failure=lambda name, err: ...)
        dispatcher.submit("supabase:save:npf_2025", store.store, record)
    """

    def __init__(self, on_failure: Optional[FailureObserver] = None):
        self._observers: List[FailureObserver] = []
        if on_failure is not None:
            self._observers.append(on_failure)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._stats = DispatchStats()

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    @property
    def pending_count(self) -> int:
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            return len(self._threads)

    def register_observer(self, observer: FailureObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unregister_observer(self, observer: FailureObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def submit(self, name: str, func: Callable[..., Any], *args: Any) -> threading.Thread:
        """Start ``func(*args)`` on a daemon thread and return immediately."""
        thread = threading.Thread(
            target=self._run,
            args=(name, func, args),
            daemon=True,
            name=f"fintrack:{name}",
        )
        with self._lock:
            self._threads.append(thread)
            self._stats.dispatched += 1
        thread.start()
        return thread

    def _run(self, name: str, func: Callable[..., Any], args: tuple) -> None:
        try:
            self._execute(name, func, args)
        finally:
            self._forget(threading.current_thread())

    def _forget(self, thread: threading.Thread) -> None:
        with self._lock:
            if thread in self._threads:
                self._threads.remove(thread)

    def _execute(self, name: str, func: Callable[..., Any], args: tuple) -> None:
        with ErrorContext(name, recoverable=True) as context:
            func(*args)

        with self._lock:
            if context.error is None:
                self._stats.succeeded += 1
            else:
                self._stats.failed += 1
                self._stats.last_failure = f"{name}: {context.error}"
                self._stats.last_failure_at = datetime.now()

        if context.error is not None:
            self._notify_observers(name, context.error)

    def _notify_observers(self, name: str, error: Exception) -> None:
        for observer in list(self._observers):
            try:
                observer(name, error)
            except Exception as e:
                logger.error(f"Error in sync failure observer: {e}")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight tasks (shutdown and tests).

        Returns:
            True if every task finished within ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        return self.pending_count == 0
