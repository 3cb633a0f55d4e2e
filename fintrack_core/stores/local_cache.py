# =============================================================================
# fintrack_core/stores/local_cache.py
# Local SQLite key-value cache
# =============================================================================
"""
LocalCache - persistent key-value store holding the last-known-good copy of
every record, the demo user directory, the audit ring buffer and the settings
blob.

Features:
- One SQLite file, one table, JSON text values
- Thread-local connections (background writers get their own)
- Synchronous reads and writes; nothing here touches the network
"""

from __future__ import annotations
import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Union

from fintrack_core.logging import get_logger

logger = get_logger(__name__)


class LocalCache:
    """
    Key-value cache backed by SQLite.

    Usage:
        cache = LocalCache(Path("local_data/cache.db"))
        cache.set("npf_data_2025", {"year": 2025})
        cache.get("npf_data_2025")
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._initialize()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            connection = sqlite3.connect(str(self.db_path), timeout=10, check_same_thread=False)
            connection.row_factory = sqlite3.Row
            self._local.connection = connection
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _initialize(self) -> None:
        with self.transaction() as conn:
            conn.execute(self.SCHEMA)
        logger.debug(f"Local cache ready at: {self.db_path}")

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded JSON value stored under ``key``."""
        row = self._get_connection().execute(
            "SELECT value FROM kv_store WHERE key = ?", [key]
        ).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable cache entry: {key}")
            return default

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` as JSON under ``key`` (last write wins)."""
        encoded = json.dumps(value, ensure_ascii=False)
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                [key, encoded, datetime.now().isoformat()],
            )

    def remove(self, key: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", [key])
            return cursor.rowcount > 0

    def contains(self, key: str) -> bool:
        row = self._get_connection().execute(
            "SELECT 1 FROM kv_store WHERE key = ?", [key]
        ).fetchone()
        return row is not None

    def keys(self, prefix: Optional[str] = None) -> List[str]:
        rows = self._get_connection().execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        keys = [row["key"] for row in rows]
        if prefix:
            # "_" is a LIKE wildcard and appears in every key, so filter here
            keys = [key for key in keys if key.startswith(prefix)]
        return keys

    def clear(self) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_store")

    def close(self) -> None:
        """Close this thread's connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
