"""Key-value persistence for TypeArcade.

Every persisted value (settings, folders, leaderboards) is stored as one
JSON document under one key. Callers read-modify-write whole collections.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger("typearcade.kv_store")


class KeyValueStore(ABC):
    """Abstract key-value store with JSON-serialisable values."""

    @abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Get the value stored under key, or default if absent or unreadable."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key if present."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """In-process store. Values are kept serialised to mirror persistence."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return _decode(key, raw, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def set_raw(self, key: str, raw: str) -> None:
        """Store an unvalidated string, e.g. to simulate corrupted data."""
        self._data[key] = raw


class SqliteKeyValueStore(KeyValueStore):
    """Store backed by a single ``settings`` table in a SQLite database."""

    def __init__(self, db_path: Path):
        """Initialize store and create the settings table if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._lock = threading.Lock()
        self._init_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_table(self) -> None:
        """Create settings table if not exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            result = cursor.fetchone()
        if not result:
            return default
        return _decode(key, result[0], default)

    def set(self, key: str, value: Any) -> None:
        with self._lock, self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO settings (key, value)
                VALUES (?, ?)
            """,
                (key, json.dumps(value, ensure_ascii=False)),
            )
            conn.commit()

    def remove(self, key: str) -> None:
        with self._lock, self._get_connection() as conn:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            conn.commit()

    def keys(self) -> list[str]:
        """List all stored keys."""
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM settings ORDER BY key")
            return [row[0] for row in cursor.fetchall()]


def _decode(key: str, raw: str, default: Any) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        log.warning(f"Malformed stored value for {key!r}, using default: {e}")
        return default
