"""
Deck Store.

Loads and saves the whole study item collection on top of a DurableStore,
migrating a legacy single-file deck the first time it is used.

Failure policy
--------------
- load() fails closed: any StorageError (including an engine that cannot
  be opened) is logged and an empty deck is returned.
- load(strict=True) re-raises instead. Commands that load, modify and
  save use it so a failed read is never written back as an empty deck.
- save() fails open: the transaction is rolled back, the previous contents
  stay intact and StorageError is re-raised so the caller can warn the
  learner that changes were not persisted.

Usage
-----
    store = DeckStore(SQLiteDurableStore(path), JsonFileLegacyStore(legacy))
    items = await store.load()
    await store.save(items)
    await store.close()
"""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional, Sequence

from studydeck.core.exceptions import StorageError
from studydeck.core.logging import get_logger
from studydeck.storage.base import DurableStore, LegacyStore
from studydeck.storage.migration import LegacyMigrator, MigrationResult
from studydeck.study.models import StudyItem, from_record, to_record
from studydeck.study.progress import StudyProgress

logger = get_logger(__name__)

PROGRESS_META_KEY = "study_progress"


class DeckStore:
    """Whole-collection persistence for study items.

    Args:
        durable: Transactional record store
        legacy: Legacy slot to migrate from (None disables migration)
    """

    def __init__(self, durable: DurableStore, legacy: Optional[LegacyStore] = None) -> None:
        self.durable = durable
        self.legacy = legacy
        self._migration_lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()
        self._migration_attempted = False
        self.last_migration: Optional[MigrationResult] = None

    async def _ensure_migrated(self) -> None:
        """Run the legacy migration at most once for this store."""
        if self.legacy is None:
            return
        async with self._migration_lock:
            if self._migration_attempted:
                return
            self._migration_attempted = True
            self.last_migration = await LegacyMigrator(self.durable, self.legacy).migrate()

    async def migrate(self) -> MigrationResult:
        """Run the legacy migration now, even if it already ran this session.

        Raises:
            StorageError: If the durable store cannot be opened or read
        """
        if self.legacy is None:
            raise StorageError("No legacy deck configured")
        await self.durable.open()
        async with self._migration_lock:
            self._migration_attempted = True
            self.last_migration = await LegacyMigrator(self.durable, self.legacy).migrate()
            return self.last_migration

    async def load(self, strict: bool = False) -> List[StudyItem]:
        """Load every stored item.

        Args:
            strict: Raise instead of returning [] when storage fails. Use
                this before a load-modify-save so a failed read can never
                be saved back as an empty deck.

        Returns:
            The stored items, or [] if storage is unavailable or unreadable

        Raises:
            StorageError: Only when strict is True
        """
        try:
            await self.durable.open()
            await self._ensure_migrated()
            records = await self.durable.get_all()
        except StorageError as e:
            logger.error("Failed to load deck", error=str(e))
            if strict:
                raise
            return []

        items: List[StudyItem] = []
        for record in records:
            item = from_record(record)
            if item is None:
                logger.warning("Skipping undecodable study item", record_id=record.get("id"))
                continue
            items.append(item)
        return items

    async def load_progress(self, strict: bool = False) -> StudyProgress:
        """Load lifetime study progress.

        Unreadable progress is replaced by a fresh StudyProgress.

        Raises:
            StorageError: Only when strict is True and storage fails
        """
        try:
            await self.durable.open()
            value = await self.durable.get_meta(PROGRESS_META_KEY)
        except StorageError as e:
            logger.error("Failed to load study progress", error=str(e))
            if strict:
                raise
            return StudyProgress()

        if value is None:
            return StudyProgress()
        try:
            return StudyProgress.from_dict(json.loads(value))
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring unreadable study progress", error=str(e))
            return StudyProgress()

    async def save(
        self, items: Sequence[StudyItem], progress: Optional[StudyProgress] = None
    ) -> None:
        """Replace the stored collection with items in one transaction.

        Args:
            items: The whole collection
            progress: Study progress written in the same transaction

        Raises:
            StorageError: If the write failed; previous contents are kept
        """
        records = [to_record(item) for item in items]
        async with self._save_lock:
            try:
                await self.durable.open()
                async with self.durable.transaction() as txn:
                    await txn.clear()
                    for record in records:
                        await txn.put(record)
                    if progress is not None:
                        await txn.set_meta(PROGRESS_META_KEY, json.dumps(progress.to_dict()))
            except StorageError as e:
                logger.error("Failed to save deck", error=str(e), items=len(records))
                raise
        logger.debug("Saved deck", items=len(records))

    async def close(self) -> None:
        await self.durable.close()

    async def __aenter__(self) -> "DeckStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
