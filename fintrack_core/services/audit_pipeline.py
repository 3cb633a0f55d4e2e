# =============================================================================
# fintrack_core/services/audit_pipeline.py
# Append-only audit log with a capped local mirror
# =============================================================================

from __future__ import annotations
import threading
from typing import List, Optional

import pandas as pd

from fintrack_core.logging import get_logger
from fintrack_core.models import AuditLogEntry
from fintrack_core.services.base_service import BaseService
from fintrack_core.stores.base import AuditSink
from fintrack_core.stores.local_cache import LocalCache
from fintrack_core.sync.dispatcher import BackgroundDispatcher

logger = get_logger(__name__)

LOGS_KEY = "mock_logs"
MAX_LOCAL_ENTRIES = 50

AUDIT_COLUMNS = ["timestamp", "user", "action", "details"]


class AuditPipeline(BaseService):
    """
    Record who did what.

    Every entry goes to the local ring buffer (newest first, 50 entries)
    synchronously and to the remote sink, when there is one, in the
    background.
    """

    def __init__(
        self,
        cache: LocalCache,
        sink: Optional[AuditSink] = None,
        dispatcher: Optional[BackgroundDispatcher] = None,
    ):
        super().__init__()
        self.cache = cache
        self.sink = sink
        self.dispatcher = dispatcher or BackgroundDispatcher()
        self._lock = threading.Lock()

    def record(self, actor_email: str, action: str, details: str = "") -> None:
        entry = AuditLogEntry.create(actor_email, action, details)

        with self._lock:
            logs = list(self.cache.get(LOGS_KEY) or [])
            logs.insert(0, entry.to_dict())
            self.cache.set(LOGS_KEY, logs[:MAX_LOCAL_ENTRIES])

        if self.sink is not None:
            self.dispatcher.submit(f"audit:{action}", self.sink.append_audit, entry)

    def local_entries(self) -> List[AuditLogEntry]:
        """The local ring buffer, newest first."""
        return [AuditLogEntry.from_dict(item) for item in self.cache.get(LOGS_KEY) or []]

    def list(self, limit: int = MAX_LOCAL_ENTRIES) -> List[AuditLogEntry]:
        """
        Newest entries first: from the remote sink when it answers, else
        from the local ring buffer.
        """
        if self.sink is not None:
            try:
                return self.sink.list_audit(limit)
            except Exception as e:
                logger.warning(f"Remote audit log unavailable, using local copy: {e}")
        return self.local_entries()[:limit]

    def to_dataframe(self, limit: int = MAX_LOCAL_ENTRIES) -> pd.DataFrame:
        """``list()`` as a DataFrame for table rendering."""
        rows = [entry.to_dict() for entry in self.list(limit)]
        return pd.DataFrame(rows, columns=AUDIT_COLUMNS)
