"""
SQLite-backed key-value store.

Provides durable storage for the cache and download indexes with:
- A single key/value table with upsert semantics
- Optional byte quota to mirror device storage limits
- Blocking sqlite3 calls moved off the event loop
"""

import asyncio
import sqlite3
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from .base import StorageError, StorageQuotaError


class SQLiteKeyValueStore:
    """
    SQLite implementation of KeyValueStore.

    Example:
        store = SQLiteKeyValueStore("./data/cache/store.db")

        await store.set("all_books", "[]")
        raw = await store.get("all_books")
    """

    def __init__(
        self,
        db_path: Path | str,
        max_bytes: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            max_bytes: Total size limit over all keys and values, None for unlimited
        """
        self.db_path = Path(db_path)
        self.max_bytes = max_bytes

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                );
            """
            )

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper settings."""
        conn = sqlite3.connect(
            self.db_path,
            timeout=30.0,
            isolation_level=None,  # Autocommit mode
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        try:
            yield conn
        except sqlite3.OperationalError as e:
            if "full" in str(e).lower():
                raise StorageQuotaError(f"SQLite store is full: {e}") from e
            raise StorageError(f"SQLite error: {e}") from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Synchronous implementations (run in a worker thread)
    # -------------------------------------------------------------------------

    def _get_sync(self, key: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            if self.max_bytes is not None:
                row = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) AS used "
                    "FROM kv WHERE key != ?",
                    (key,),
                ).fetchone()
                needed = len(key.encode("utf-8")) + len(value.encode("utf-8"))
                if row["used"] + needed > self.max_bytes:
                    raise StorageQuotaError(f"Quota of {self.max_bytes} bytes exceeded writing '{key}'", key=key)

            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """,
                (key, value, time.time()),
            )

    def _delete_sync(self, keys: list[str]) -> None:
        with self._get_connection() as conn:
            for key in keys:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def _keys_sync(self) -> list[str]:
        with self._get_connection() as conn:
            return [row["key"] for row in conn.execute("SELECT key FROM kv ORDER BY rowid").fetchall()]

    def _multi_get_sync(self, keys: list[str]) -> list[tuple[str, str | None]]:
        with self._get_connection() as conn:
            results: list[tuple[str, str | None]] = []
            for key in keys:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
                results.append((key, row["value"] if row else None))
            return results

    # -------------------------------------------------------------------------
    # KeyValueStore protocol
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, [key])

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._keys_sync)

    async def multi_get(self, keys: Iterable[str]) -> list[tuple[str, str | None]]:
        return await asyncio.to_thread(self._multi_get_sync, list(keys))

    async def multi_delete(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self._delete_sync, list(keys))

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Get store statistics."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS count, "
                "COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) AS used FROM kv"
            ).fetchone()

        db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "backend": "sqlite",
            "db_path": str(self.db_path),
            "db_size_mb": round(db_size / (1024 * 1024), 2),
            "total_entries": row["count"],
            "used_bytes": row["used"],
            "max_bytes": self.max_bytes,
        }
