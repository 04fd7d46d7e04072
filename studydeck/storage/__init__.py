"""Deck storage package.

- base: DurableStore / LegacyStore interfaces
- sqlite: SQLite durable store (aiosqlite)
- memory: In-memory stores with fault injection
- legacy: Legacy single-file deck slot
- migration: One-shot legacy migration
- deck_store: Whole-collection load/save
- factory: Process-wide DeckStore handle
"""

from studydeck.storage.base import DurableStore, LegacyStore, StoreTransaction
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.factory import (
    close_deck_store,
    create_deck_store,
    get_deck_store,
    set_deck_store,
)
from studydeck.storage.legacy import JsonFileLegacyStore
from studydeck.storage.memory import InMemoryDurableStore, InMemoryLegacyStore
from studydeck.storage.migration import (
    MIGRATION_META_KEY,
    LegacyMigrator,
    MigrationOutcome,
    MigrationResult,
    MigrationState,
)
from studydeck.storage.sqlite import SQLiteDurableStore

__all__ = [
    "DurableStore",
    "LegacyStore",
    "StoreTransaction",
    "DeckStore",
    "close_deck_store",
    "create_deck_store",
    "get_deck_store",
    "set_deck_store",
    "JsonFileLegacyStore",
    "InMemoryDurableStore",
    "InMemoryLegacyStore",
    "MIGRATION_META_KEY",
    "LegacyMigrator",
    "MigrationOutcome",
    "MigrationResult",
    "MigrationState",
    "SQLiteDurableStore",
]
