# =============================================================================
# fintrack_core/sync/connection_monitor.py
# Connectivity probe and heartbeat
# =============================================================================
"""
ConnectivityMonitor - classifies the store chain as online / offline / demo.

Features:
- On-demand probe against the primary remote
- Keep-alive ping so an idle-suspending managed database stays warm
- Heartbeat thread with an explicit stop handle
- Callbacks on status change
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from fintrack_core.logging import get_logger
from fintrack_core.models import ConnectivityState
from fintrack_core.stores.base import RecordStore

logger = get_logger(__name__)


@dataclass
class ConnectionSnapshot:
    """Last probe result with metadata."""
    status: Optional[ConnectivityState] = None
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None


class HeartbeatHandle:
    """Returned by ``start_heartbeat``; ``stop()`` ends the loop."""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event):
        self._thread = thread
        self._stop_event = stop_event

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        logger.debug("Heartbeat stopped")


class ConnectivityMonitor:
    """
    Probe whichever remote is primary.

    Usage:
        monitor = ConnectivityMonitor(primary=script_client, keep_alive_target=supabase_store)
        monitor.probe()                     # ConnectivityState.ONLINE
        handle = monitor.start_heartbeat(60)
        ...
        handle.stop()
    """

    def __init__(
        self,
        primary: Optional[RecordStore] = None,
        keep_alive_target: Optional[RecordStore] = None,
    ):
        self.primary = primary
        self.keep_alive_target = keep_alive_target
        self._snapshot = ConnectionSnapshot()
        self._callbacks: List[Callable[[ConnectionSnapshot], None]] = []
        self._handle: Optional[HeartbeatHandle] = None

    @property
    def snapshot(self) -> ConnectionSnapshot:
        return self._snapshot

    @property
    def status(self) -> Optional[ConnectivityState]:
        """Result of the most recent probe (None before the first one)."""
        return self._snapshot.status

    @property
    def is_online(self) -> bool:
        return self._snapshot.status == ConnectivityState.ONLINE

    def probe(self) -> ConnectivityState:
        """
        Perform a connectivity check and update the snapshot.

        Returns:
            DEMO when no remote is configured, OFFLINE when the check raises
            or times out, ONLINE otherwise
        """
        old_status = self._snapshot.status
        self._snapshot.last_check = datetime.now()

        if self.primary is None:
            status = ConnectivityState.DEMO
            self._snapshot.error_message = None
        else:
            try:
                self.primary.ping()
                status = ConnectivityState.ONLINE
                self._snapshot.last_online = datetime.now()
                self._snapshot.consecutive_failures = 0
                self._snapshot.error_message = None
            except Exception as e:
                status = ConnectivityState.OFFLINE
                self._snapshot.consecutive_failures += 1
                self._snapshot.error_message = str(e)
                logger.debug(f"{self.primary.name} probe failed: {e}")

        self._snapshot.status = status
        if old_status != status:
            old = old_status.value if old_status else "unknown"
            logger.info(f"Connection status changed: {old} -> {status.value}")
            self._notify_callbacks()
        return status

    def keep_alive(self) -> None:
        """Touch the keep-alive target; failures only matter to the probe."""
        if self.keep_alive_target is None:
            return
        try:
            self.keep_alive_target.keep_alive()
        except Exception as e:
            logger.debug(f"Keep-alive ping failed: {e}")

    def start_heartbeat(self, interval_seconds: float) -> HeartbeatHandle:
        """
        Run ``probe()`` and ``keep_alive()`` now and then every interval
        until the returned handle is stopped.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Heartbeat interval must be positive: {interval_seconds}")
        if self._handle is not None and self._handle.is_running:
            return self._handle

        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._heartbeat_loop,
            args=(interval_seconds, stop_event),
            daemon=True,
            name="FinTrackHeartbeat",
        )
        self._handle = HeartbeatHandle(thread, stop_event)
        thread.start()
        logger.debug(f"Heartbeat started (every {interval_seconds}s)")
        return self._handle

    def stop_heartbeat(self) -> None:
        if self._handle is not None:
            self._handle.stop()
            self._handle = None

    def _heartbeat_loop(self, interval: float, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.probe()
                self.keep_alive()
            except Exception as e:
                logger.error(f"Error in heartbeat tick: {e}")

            # Wait for interval or stop signal
            if stop_event.wait(timeout=interval):
                break

    def register_callback(self, callback: Callable[[ConnectionSnapshot], None]) -> None:
        """Register a callback for status changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionSnapshot], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in self._callbacks:
            try:
                callback(self._snapshot)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        status = self._snapshot.status
        return {
            "status": status.value if status else "unknown",
            "is_online": self.is_online,
            "remote": self.primary.name if self.primary else None,
            "last_check": self._snapshot.last_check.isoformat() if self._snapshot.last_check else None,
            "last_online": self._snapshot.last_online.isoformat() if self._snapshot.last_online else None,
            "failures": self._snapshot.consecutive_failures,
            "error": self._snapshot.error_message,
        }
