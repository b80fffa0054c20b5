"""Per-thread checkpoint stores.

Each conversation thread owns one SQLite file under the checkpoint
directory. The registry lazily opens a connection per thread, caches it,
and closes or deletes it on request. Concurrent acquires for the same
thread share a single connection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
from langgraph.checkpoint.sqlite.aio import AsyncSqliteSaver

from config.paths import get_thread_checkpoint_dir, thread_checkpoint_filename
from core.errors import MissingThreadId

logger = logging.getLogger(__name__)

_SIDECAR_SUFFIXES = ("-wal", "-shm", "-journal")


class CheckpointerRegistry:
    """thread_id -> AsyncSqliteSaver, at most one live connection per thread."""

    def __init__(self, checkpoint_dir: str | Path | None = None) -> None:
        self._dir = Path(checkpoint_dir) if checkpoint_dir else None
        self._savers: dict[str, AsyncSqliteSaver] = {}
        self._conns: dict[str, aiosqlite.Connection] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    @property
    def checkpoint_dir(self) -> Path:
        if self._dir is None:
            return get_thread_checkpoint_dir()
        self._dir.mkdir(parents=True, exist_ok=True)
        return self._dir

    def path_for(self, thread_id: str) -> Path:
        if not thread_id:
            raise MissingThreadId()
        return self.checkpoint_dir / thread_checkpoint_filename(thread_id)

    def is_open(self, thread_id: str) -> bool:
        return thread_id in self._savers

    async def _lock_for(self, thread_id: str) -> asyncio.Lock:
        async with self._locks_guard:
            if thread_id not in self._locks:
                self._locks[thread_id] = asyncio.Lock()
            return self._locks[thread_id]

    @asynccontextmanager
    async def _thread_lock(self, thread_id: str) -> AsyncIterator[None]:
        while True:
            lock = await self._lock_for(thread_id)
            await lock.acquire()
            # delete() may have retired this lock while we waited on it
            if self._locks.get(thread_id) is lock:
                break
            lock.release()
        try:
            yield
        finally:
            lock.release()

    async def acquire(self, thread_id: str) -> AsyncSqliteSaver:
        """Return the thread's checkpointer, opening its store on first use."""
        if not thread_id:
            raise MissingThreadId()

        async with self._thread_lock(thread_id):
            saver = self._savers.get(thread_id)
            if saver is not None:
                return saver

            db_path = self.path_for(thread_id)
            conn = await aiosqlite.connect(str(db_path))
            try:
                # @@@ WAL mode lets readers inspect history while a run is writing
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA busy_timeout=30000")
                saver = AsyncSqliteSaver(conn)
                await saver.setup()
            except Exception:
                await conn.close()
                raise

            self._conns[thread_id] = conn
            self._savers[thread_id] = saver
            logger.info("[Checkpointer] Opened %s for thread %s", db_path.name, thread_id)
            return saver

    async def release(self, thread_id: str) -> None:
        """Close the thread's store if open. No-op otherwise."""
        async with self._thread_lock(thread_id):
            await self._close_locked(thread_id)

    async def _close_locked(self, thread_id: str) -> None:
        conn = self._conns.pop(thread_id, None)
        self._savers.pop(thread_id, None)
        if conn is None:
            return
        try:
            await conn.commit()
        finally:
            await conn.close()
        logger.info("[Checkpointer] Closed store for thread %s", thread_id)

    async def release_all(self) -> None:
        thread_ids = list(self._conns)
        results = await asyncio.gather(*(self.release(tid) for tid in thread_ids), return_exceptions=True)
        for tid, result in zip(thread_ids, results):
            if isinstance(result, Exception):
                logger.error("[Checkpointer] Failed to close store for thread %s: %s", tid, result)

    async def delete(self, thread_id: str) -> None:
        """Close the thread's store and remove its files. Idempotent."""
        if not thread_id:
            raise MissingThreadId()
        async with self._thread_lock(thread_id):
            await self._close_locked(thread_id)
            db_path = self.path_for(thread_id)
            for path in [db_path, *(db_path.with_name(db_path.name + s) for s in _SIDECAR_SUFFIXES)]:
                path.unlink(missing_ok=True)
            self._locks.pop(thread_id, None)
        logger.info("[Checkpointer] Deleted store for thread %s", thread_id)
