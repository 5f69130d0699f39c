# =============================================================================
# roster_core/offline/local_cache.py
# Durable Local Key-Value Cache
# =============================================================================
"""
LocalCache - SQLite-backed key-value store for cached snapshots.

Features:
- One table, one row per logical key
- Thread-local connections
- Whole-value writes (a value is either fully replaced or removed)
- Explicit lifecycle: open once at startup, close at shutdown
"""

from __future__ import annotations
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union
import logging

logger = logging.getLogger(__name__)


class LocalCache:
    """
    Durable key-value cache stored in a local SQLite file.

    Usage:
        cache = LocalCache(Path("local_data/roster_cache.db"))
        cache.set("user.profile", b'{"identity_id": "u1"}')
        cache.get("user.profile")
        cache.delete("user.profile")
        cache.close()
    """

    DEFAULT_DB_PATH = Path("local_data") / "roster_cache.db"

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_cache (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL,
            updated_at TEXT NOT NULL
        )
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Open the cache, creating the database file and schema if needed.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self._ensure_directory()
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._closed = False
        self._initialize()

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if self._closed:
            raise sqlite3.ProgrammingError("LocalCache is closed")
        if getattr(self._local, "connection", None) is None:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False, timeout=5.0)
            self._local.connection = conn
            with self._connections_lock:
                self._connections.append(conn)
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
        logger.info(f"Local cache opened at: {self.db_path}")

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes for key, or None when absent."""
        row = self._get_connection().execute(
            "SELECT value FROM kv_cache WHERE key = ?", [key]
        ).fetchone()
        if row is None:
            return None
        value = row[0]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_cache (key, value, updated_at) VALUES (?, ?, ?)",
                [key, sqlite3.Binary(value), datetime.now().isoformat()],
            )

    def delete(self, key: str) -> None:
        """Remove key. Removing a missing key is a no-op."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_cache WHERE key = ?", [key])

    def delete_if_unchanged(self, key: str, expected: bytes) -> bool:
        """Remove key only while it still holds expected. Returns True if removed."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM kv_cache WHERE key = ? AND value = ?",
                [key, sqlite3.Binary(expected)],
            )
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        rows = self._get_connection().execute("SELECT key FROM kv_cache ORDER BY key").fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close every connection opened by this cache."""
        if self._closed:
            return
        self._closed = True
        with self._connections_lock:
            for conn in self._connections:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.warning(f"Error closing cache connection: {e}")
            self._connections.clear()
        self._local = threading.local()
        logger.info("Local cache closed")

    def __enter__(self) -> LocalCache:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
