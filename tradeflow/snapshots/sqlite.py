"""SQLite implementation of the snapshot store."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .base import SnapshotStore


class SQLiteSnapshotStore(SnapshotStore):
    """Persist snapshots in a single SQLite table."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    # ------------------------------------------------------------------
    # Store API
    async def get(self, key: str) -> Optional[str]:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT value FROM snapshots WHERE key = ?", key
        )
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO snapshots (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            key,
            value,
            datetime.now(timezone.utc).isoformat(),
        )

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._execute, "DELETE FROM snapshots WHERE key = ?", key)

    def close(self) -> None:
        self._conn.close()
