"""SQLite adapter — implements StoragePort on a single key-value table.

sqlite3 is synchronous, so every call is wrapped with asyncio.to_thread.
Each write is a single statement inside its own transaction, so readers
never observe a partially written value.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from src.ports.storage_port import StorageError

logger = logging.getLogger(__name__)


class SQLiteStorage:
    """SQLite-backed implementation of StoragePort."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """One connection per call: commit on success, always closed."""
        conn = sqlite3.connect(self._db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Create the kv table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        logger.debug("Key-value table initialized at %s", self._db_path)

    # ------------------------------------------------------------------
    # Sync primitives (run in a worker thread)
    # ------------------------------------------------------------------

    def _get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def _set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def _remove(self, keys: list[str]) -> None:
        with self._connect() as conn:
            conn.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in keys])

    def _keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # StoragePort
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        try:
            return await asyncio.to_thread(self._get, key)
        except sqlite3.Error as exc:
            logger.error("Failed to read key '%s': %s", key, exc)
            raise StorageError(f"Failed to read '{key}': {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._set, key, value)
        except sqlite3.Error as exc:
            logger.error("Failed to write key '%s': %s", key, exc)
            raise StorageError(f"Failed to write '{key}': {exc}") from exc
        logger.debug("Stored '%s' (%d chars)", key, len(value))

    async def remove(self, key: str) -> None:
        await self.multi_remove([key])

    async def multi_remove(self, keys: list[str]) -> None:
        if not keys:
            return
        try:
            await asyncio.to_thread(self._remove, list(keys))
        except sqlite3.Error as exc:
            logger.error("Failed to remove %d key(s): %s", len(keys), exc)
            raise StorageError(f"Failed to remove keys: {exc}") from exc
        logger.debug("Removed keys: %s", ", ".join(keys))

    async def get_all_keys(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._keys)
        except sqlite3.Error as exc:
            logger.error("Failed to list keys: %s", exc)
            raise StorageError(f"Failed to list keys: {exc}") from exc
