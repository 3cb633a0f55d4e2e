# =============================================================================
# fintrack_core/services/report_repository.py
# Report reads and writes across the A -> B -> cache chain
# =============================================================================
"""
ReportRepository - single entry point for report payloads.

Reads walk the remotes in priority order and fall back to the local cache.
Writes land in the cache synchronously and reach every configured remote
through one-shot background tasks.
"""

from __future__ import annotations
from typing import Any, List, Optional, Sequence, Union

from fintrack_core.logging import get_logger
from fintrack_core.records import KindLike, cache_key, make_record
from fintrack_core.services.base_service import BaseService
from fintrack_core.stores.base import RecordStore
from fintrack_core.stores.local_cache import LocalCache
from fintrack_core.sync.dispatcher import BackgroundDispatcher

logger = get_logger(__name__)


class ReportRepository(BaseService):
    """
    Usage:
        repo = ReportRepository(cache, remotes=[script_client, supabase_store], dispatcher=dispatcher)
        repo.put("daily", 2025, {"x": 1}, date="2025-06-01")
        repo.get("daily", 2025, date="2025-06-01")   # {"x": 1}
    """

    def __init__(
        self,
        cache: LocalCache,
        remotes: Sequence[RecordStore] = (),
        dispatcher: Optional[BackgroundDispatcher] = None,
    ):
        super().__init__()
        self.cache = cache
        # Priority order: the first remote that answers with a payload wins
        self.remotes: List[RecordStore] = list(remotes)
        self.dispatcher = dispatcher or BackgroundDispatcher()

    def get(self, kind: KindLike, year: Union[int, str], date: Optional[str] = None) -> Optional[Any]:
        """
        Return the payload for a report, or None when no tier has it.

        A remote payload is written through to the cache before it is
        returned. Remote failures degrade silently to the next tier.
        """
        record = make_record(kind, year, date=date)
        key = cache_key(record.kind, record.year, record.date)

        for remote in self.remotes:
            try:
                payload = remote.fetch(record.id)
            except Exception as e:
                logger.warning(f"{remote.name} fetch failed for {record.id}: {e}")
                continue
            if payload is not None:
                self.cache.set(key, payload)
                logger.debug(f"Fetched {record.id} from {remote.name}")
                return payload

        return self.cache.get(key)

    def put(self, kind: KindLike, year: Union[int, str], payload: Any, date: Optional[str] = None) -> bool:
        """
        Optimistic write: cache now, remotes in the background.

        Always returns True once the cache write has landed; remote outcomes
        are reported only through the dispatcher's failure observers.
        """
        record = make_record(kind, year, payload=payload, date=date)
        self.cache.set(cache_key(record.kind, record.year, record.date), payload)

        for remote in self.remotes:
            self.dispatcher.submit(f"{remote.name}:save:{record.id}", remote.store, record)
        return True

    def delete(self, kind: KindLike, year: Union[int, str], date: Optional[str] = None) -> bool:
        """
        Remove a report from every remote that has a delete operation and
        drop the cached copy.

        Returns:
            True when at least one remote confirmed the delete
        """
        record = make_record(kind, year, date=date)
        confirmed = False

        for remote in self.remotes:
            if not remote.supports_delete:
                logger.info(f"{remote.name} has no delete action; skipping {record.id}")
                continue
            try:
                remote.remove(record.id)
                confirmed = True
            except Exception as e:
                logger.warning(f"{remote.name} delete failed for {record.id}: {e}")

        if self.cache.remove(cache_key(record.kind, record.year, record.date)):
            logger.debug(f"Invalidated cached copy of {record.id}")
        return confirmed
