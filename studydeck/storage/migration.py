"""Legacy deck migration.

Moves a deck saved by the old single-file layout (one JSON array in the
legacy slot) into the durable store, once.

State machine
-------------
    NOT_MIGRATED ──(valid legacy list written)──> MIGRATED

The state is kept in the durable store's meta table under
``legacy_migration`` and is written in the same transaction as the
migrated items, so a crash can never leave items without the marker or
the marker without items. Once MIGRATED, the legacy slot is never read
again.

Failure policy: a legacy slot that cannot be parsed, or a durable write
that fails, is logged and reported in the result. The legacy slot is left
untouched in both cases so no data is lost, and the caller goes on to
load whatever the durable store already holds.

Records that cannot be decoded are not written. When any were found the
migration completes as PARTIAL: the decodable items and the marker are
committed, but the legacy slot is kept so the unreadable records survive
for manual recovery."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from studydeck.core.exceptions import StorageError
from studydeck.storage.base import DurableStore, LegacyStore, Record
from studydeck.study.models import from_record, to_record

MIGRATION_META_KEY = "legacy_migration"


class _Logger:
    """Lazy logger holder."""

    _instance = None

    @classmethod
    def get(cls) -> Any:
        """Get logger (lazy-loaded)."""
        if cls._instance is None:
            from studydeck.core.logging import get_logger

            cls._instance = get_logger(__name__)
        return cls._instance


class MigrationState(Enum):
    """Persisted migration state."""

    NOT_MIGRATED = "not_migrated"
    MIGRATED = "migrated"


class MigrationOutcome(Enum):
    """What a single migration attempt did."""

    ALREADY_MIGRATED = "already_migrated"
    NO_LEGACY_DATA = "no_legacy_data"
    PARSE_FAILED = "parse_failed"
    WRITE_FAILED = "write_failed"
    MIGRATED = "migrated"
    # Migrated, but undecodable records were left in the legacy slot
    PARTIAL = "partial"


@dataclass
class MigrationResult:
    """Result of a legacy migration attempt."""

    outcome: MigrationOutcome
    items_migrated: int = 0
    records_dropped: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """False when legacy data exists but could not be moved."""
        return self.outcome not in (
            MigrationOutcome.PARSE_FAILED,
            MigrationOutcome.WRITE_FAILED,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "outcome": self.outcome.value,
            "success": self.success,
            "items_migrated": self.items_migrated,
            "records_dropped": self.records_dropped,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
        }


async def get_migration_state(durable: DurableStore) -> MigrationState:
    """Read the persisted migration state from an open durable store."""
    value = await durable.get_meta(MIGRATION_META_KEY)
    if value == MigrationState.MIGRATED.value:
        return MigrationState.MIGRATED
    return MigrationState.NOT_MIGRATED


class LegacyMigrator:
    """Move legacy slot contents into the durable store.

    The durable store must already be open. Errors reading the migration
    state itself propagate as StorageError.
    """

    def __init__(self, durable: DurableStore, legacy: LegacyStore) -> None:
        self.durable = durable
        self.legacy = legacy

    async def migrate(self) -> MigrationResult:
        """Run one migration attempt.

        Returns:
            MigrationResult describing the outcome
        """
        result = MigrationResult(outcome=MigrationOutcome.NO_LEGACY_DATA)

        if await get_migration_state(self.durable) is MigrationState.MIGRATED:
            result.outcome = MigrationOutcome.ALREADY_MIGRATED
            return self._finish(result)

        records = self._read_legacy(result)
        if records is not None:
            await self._write_records(records, result)

        return self._finish(result)

    def _read_legacy(self, result: MigrationResult) -> Optional[List[Any]]:
        """Parse the legacy slot. Sets the outcome when there is nothing to write."""
        try:
            text = self.legacy.read()
        except StorageError as e:
            _Logger.get().error("Could not read legacy deck", error=str(e))
            result.outcome = MigrationOutcome.PARSE_FAILED
            result.errors.append(str(e))
            return None

        if text is None:
            result.outcome = MigrationOutcome.NO_LEGACY_DATA
            return None

        try:
            data = json.loads(text)
        except ValueError as e:
            _Logger.get().error("Legacy deck is not valid JSON", error=str(e))
            result.outcome = MigrationOutcome.PARSE_FAILED
            result.errors.append(f"Invalid JSON: {e}")
            return None

        if not isinstance(data, list):
            _Logger.get().error(
                "Legacy deck is not a list", found=type(data).__name__
            )
            result.outcome = MigrationOutcome.PARSE_FAILED
            result.errors.append(f"Expected a list, got {type(data).__name__}")
            return None

        return data

    def _decode(self, raw_records: List[Any], result: MigrationResult) -> List[Record]:
        records: List[Record] = []
        for index, raw in enumerate(raw_records):
            item = from_record(raw) if isinstance(raw, dict) else None
            if item is None:
                result.records_dropped += 1
                _Logger.get().warning("Dropping undecodable legacy record", index=index)
                continue
            records.append(to_record(item))
        return records

    async def _write_records(
        self, raw_records: List[Any], result: MigrationResult
    ) -> None:
        records = self._decode(raw_records, result)

        try:
            async with self.durable.transaction() as txn:
                if records:
                    await txn.clear()
                    for record in records:
                        await txn.put(record)
                await txn.set_meta(MIGRATION_META_KEY, MigrationState.MIGRATED.value)
        except StorageError as e:
            _Logger.get().error("Legacy migration write failed", error=str(e))
            result.outcome = MigrationOutcome.WRITE_FAILED
            result.errors.append(str(e))
            return

        # put() overwrites by id, so duplicates collapse into one row
        result.items_migrated = len({record["id"] for record in records})

        if result.records_dropped:
            result.outcome = MigrationOutcome.PARTIAL
            _Logger.get().warning(
                "Keeping legacy deck with unreadable records",
                dropped=result.records_dropped,
            )
            return

        result.outcome = MigrationOutcome.MIGRATED
        try:
            self.legacy.remove()
        except StorageError as e:
            # Marker is committed, so the slot will not be migrated twice
            _Logger.get().warning("Could not remove legacy deck", error=str(e))
            result.errors.append(str(e))

    def _finish(self, result: MigrationResult) -> MigrationResult:
        result.end_time = datetime.now()
        result.duration_seconds = (result.end_time - result.start_time).total_seconds()
        if result.outcome in (MigrationOutcome.MIGRATED, MigrationOutcome.PARTIAL):
            _Logger.get().info(
                "Migrated legacy deck",
                items=result.items_migrated,
                dropped=result.records_dropped,
            )
        return result
