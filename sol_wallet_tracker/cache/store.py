"""
Key-value stores backing the wallet cache.

All access goes through the abstract interface so the cache can live in
memory (tests, single process) or in a SQLite file shared across restarts.
"""

from __future__ import annotations

import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

SCHEMA_WALLET_CACHE = """
CREATE TABLE IF NOT EXISTS wallet_cache (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);
"""


class CacheStoreError(Exception):
    """Raised when the underlying store cannot be read or written."""


class KeyValueStore(ABC):
    """String key -> string value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Insert or overwrite the value for key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; no-op if absent."""
        ...


class MemoryStore(KeyValueStore):
    """In-process dict store; contents are lost on exit."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class SQLiteStore(KeyValueStore):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec
        self.ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            raise CacheStoreError(f"cannot open cache database {self._path}: {e}") from e
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise CacheStoreError(str(e)) from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.executescript(SCHEMA_WALLET_CACHE)

    def get(self, key: str) -> str | None:
        with self._cursor() as cur:
            cur.execute("SELECT value FROM wallet_cache WHERE key = ?", (key,))
            row = cur.fetchone()
        return row["value"] if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO wallet_cache (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, int(time.time())),
            )

    def delete(self, key: str) -> None:
        with self._cursor() as cur:
            cur.execute("DELETE FROM wallet_cache WHERE key = ?", (key,))


def get_store(path: str | Path | None = None) -> KeyValueStore:
    """SQLiteStore for a path, MemoryStore when path is None."""
    if path is None:
        return MemoryStore()
    return SQLiteStore(path)
