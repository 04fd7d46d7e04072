"""
SQLite Durable Store.

Persists study items in a local SQLite database through aiosqlite, so every
storage call suspends on I/O instead of blocking the event loop.

Schema
------
    study_items(id TEXT PRIMARY KEY, next_review_at INTEGER, record TEXT)
    deck_meta(key TEXT PRIMARY KEY, value TEXT)

``record`` holds the item as JSON (study.models.to_record). The
``next_review_at`` column is denormalized for the due-date index.

Transactions use ``BEGIN IMMEDIATE`` so the write lock is taken up front;
a concurrent writer in another process waits up to ``timeout`` seconds and
then fails with StorageError instead of interleaving.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

import aiosqlite

from studydeck.core.exceptions import StorageError, StorageUnavailableError
from studydeck.core.logging import get_logger
from studydeck.storage.base import DurableStore, Record, StoreTransaction

logger = get_logger(__name__)

MEMORY_DATABASE = ":memory:"


class _SQLiteTransaction(StoreTransaction):
    """Writes against an open BEGIN IMMEDIATE transaction."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def clear(self) -> None:
        try:
            await self._db.execute("DELETE FROM study_items")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to clear deck: {e}") from e

    async def put(self, record: Record) -> None:
        try:
            payload = json.dumps(record, ensure_ascii=False)
            await self._db.execute(
                """
                INSERT OR REPLACE INTO study_items (id, next_review_at, record)
                VALUES (?, ?, ?)
                """,
                (str(record["id"]), int(record.get("next_review_at") or 0), payload),
            )
        except (sqlite3.Error, KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write study item: {e}") from e

    async def set_meta(self, key: str, value: str) -> None:
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO deck_meta (key, value) VALUES (?, ?)",
                (key, value),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write deck metadata: {e}") from e


class SQLiteDurableStore(DurableStore):
    """Durable store backed by a SQLite file.

    Args:
        db_path: Database file, or ":memory:" for a private in-process database
        timeout: Seconds to wait for another writer's lock
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0) -> None:
        self.db_path = str(db_path)
        self.timeout = timeout
        self._db: Optional[aiosqlite.Connection] = None
        self._txn_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._db is not None

    async def open(self) -> None:
        """Connect and create tables if needed."""
        if self._db is not None:
            return

        if self.db_path != MEMORY_DATABASE:
            try:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageUnavailableError(
                    f"Cannot create deck directory for {self.db_path}: {e}"
                ) from e

        try:
            # Autocommit mode; transactions are issued explicitly
            db = await aiosqlite.connect(
                self.db_path, timeout=self.timeout, isolation_level=None
            )
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailableError(
                f"Cannot open deck database {self.db_path}: {e}"
            ) from e

        try:
            await self._init_tables(db)
        except sqlite3.Error as e:
            await db.close()
            raise StorageUnavailableError(
                f"Cannot initialize deck database {self.db_path}: {e}"
            ) from e

        self._db = db
        logger.debug("Opened deck database", path=self.db_path)

    async def _init_tables(self, db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS study_items (
                id TEXT PRIMARY KEY,
                next_review_at INTEGER NOT NULL DEFAULT 0,
                record TEXT NOT NULL
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS deck_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_study_items_due
            ON study_items(next_review_at)
        """)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError("Deck database is not open")
        return self._db

    async def get_all(self) -> List[Record]:
        """Read every stored record.

        Rows whose JSON cannot be parsed are skipped with a warning.
        """
        db = self._connection()
        try:
            async with db.execute(
                "SELECT id, record FROM study_items ORDER BY rowid"
            ) as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read deck: {e}") from e

        records: List[Record] = []
        for item_id, payload in rows:
            try:
                record = json.loads(payload)
            except (TypeError, ValueError):
                logger.warning("Skipping unreadable stored record", item_id=item_id)
                continue
            if isinstance(record, dict):
                records.append(record)
        return records

    async def get_meta(self, key: str) -> Optional[str]:
        db = self._connection()
        try:
            async with db.execute(
                "SELECT value FROM deck_meta WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read deck metadata: {e}") from e
        return row[0] if row else None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        """Run the block in one BEGIN IMMEDIATE transaction.

        Commits on normal exit. If the block raises, the transaction is
        rolled back and the exception propagates unchanged.
        """
        db = self._connection()
        async with self._txn_lock:
            try:
                await db.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StorageError(f"Failed to start transaction: {e}") from e

            try:
                yield _SQLiteTransaction(db)
            except BaseException:
                await self._rollback(db)
                raise

            try:
                await db.execute("COMMIT")
            except sqlite3.Error as e:
                await self._rollback(db)
                raise StorageError(f"Failed to commit transaction: {e}") from e

    async def _rollback(self, db: aiosqlite.Connection) -> None:
        try:
            await db.execute("ROLLBACK")
        except sqlite3.Error as e:
            # No transaction left to roll back
            logger.debug("Rollback skipped", error=str(e))
