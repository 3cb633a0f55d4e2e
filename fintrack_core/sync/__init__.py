# =============================================================================
# fintrack_core/sync/__init__.py
# Background write dispatch and connectivity monitoring
# =============================================================================

from fintrack_core.sync.connection_monitor import (
    ConnectionSnapshot,
    ConnectivityMonitor,
    HeartbeatHandle,
)
from fintrack_core.sync.dispatcher import (
    BackgroundDispatcher,
    DispatchStats,
    FailureObserver,
)

__all__ = [
    # Connectivity
    "ConnectionSnapshot",
    "ConnectivityMonitor",
    "HeartbeatHandle",
    # Dispatch
    "BackgroundDispatcher",
    "DispatchStats",
    "FailureObserver",
]
