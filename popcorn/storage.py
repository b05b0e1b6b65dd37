# popcorn/storage.py
import sqlite3
import os
import logging
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# --- SQLite key-value store ---
class SqliteKeyValueStore:
    """
    Process-wide key-value persistence backed by a single SQLite table.
    Values are opaque strings; callers serialize (JSON) before writing.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with self.conn() as c:
            c.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")

    @contextmanager
    def conn(self):
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        try:
            yield con
            con.commit()
        finally:
            con.close()

    def get(self, key: str) -> Optional[str]:
        with self.conn() as c:
            r = c.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return r["value"] if r else None

    def set(self, key: str, value: str) -> None:
        with self.conn() as c:
            c.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
        logger.debug("kv write key=%s bytes=%d", key, len(value))

    def delete(self, key: str) -> None:
        with self.conn() as c:
            c.execute("DELETE FROM kv WHERE key = ?", (key,))

# --- In-memory store (used for unit tests) ---
class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str): return self._data.get(key)
    def set(self, key: str, value: str): self._data[key] = value
    def delete(self, key: str): self._data.pop(key, None)
