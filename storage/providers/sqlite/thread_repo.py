"""SQLite repository for thread metadata blobs."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SQLiteThreadRepo:
    """Thread repository keyed by thread id, metadata stored as JSON text."""

    def __init__(self, db_path: str | Path, conn: sqlite3.Connection | None = None) -> None:
        self._own_conn = conn is None
        if conn is not None:
            self._conn = conn
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.Lock()
        self._ensure_table()

    def close(self) -> None:
        if self._own_conn:
            self._conn.close()

    def create_thread(self, thread_id: str, metadata: dict[str, Any] | None = None) -> None:
        now = int(time.time() * 1000)
        with self._lock:
            self._conn.execute(
                """
                INSERT OR IGNORE INTO threads (thread_id, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (thread_id, json.dumps(metadata or {}), now, now),
            )
            self._conn.commit()

    def get_metadata(self, thread_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT metadata FROM threads WHERE thread_id = ?",
                (thread_id,),
            ).fetchone()
        if not row:
            return None
        if not row[0]:
            return {}
        try:
            value = json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("[Threads] Unparsable metadata for thread %s, treating as empty", thread_id)
            return {}
        return value if isinstance(value, dict) else {}

    def update_metadata(self, thread_id: str, metadata: dict[str, Any]) -> None:
        now = int(time.time() * 1000)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO threads (thread_id, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(thread_id) DO UPDATE SET
                    metadata = excluded.metadata,
                    updated_at = excluded.updated_at
                """,
                (thread_id, json.dumps(metadata), now, now),
            )
            self._conn.commit()

    def delete_thread(self, thread_id: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM threads WHERE thread_id = ?", (thread_id,))
            self._conn.commit()

    def list_thread_ids(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT thread_id FROM threads ORDER BY updated_at DESC").fetchall()
        return [r[0] for r in rows]

    def _ensure_table(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS threads (
                    thread_id TEXT PRIMARY KEY,
                    metadata TEXT,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )
            self._conn.commit()
