"""
Deck Store Factory.

Builds the DeckStore for a configuration and holds the process-wide handle.

    create_deck_store(config)
        ├── "sqlite" → SQLiteDurableStore  (config.database_path)
        └── "memory" → InMemoryDurableStore (lost on exit)

When storage.legacy.enabled is set, the legacy slot at config.legacy_path
is attached so load() migrates it on first use.

Usage
-----
    from studydeck.storage.factory import get_deck_store, close_deck_store

    store = get_deck_store(config)
    items = await store.load()
    ...
    await close_deck_store()

Tests substitute a store with set_deck_store().
"""

from typing import Any, Optional

from studydeck.core.config import Config
from studydeck.core.exceptions import ConfigValidationError
from studydeck.storage.base import DurableStore, LegacyStore
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.legacy import JsonFileLegacyStore
from studydeck.storage.memory import InMemoryDurableStore
from studydeck.storage.sqlite import SQLiteDurableStore


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


_deck_store: Optional[DeckStore] = None


def _create_durable_store(config: Config) -> DurableStore:
    backend_type = config.storage.backend.lower()

    if backend_type == "sqlite":
        _Logger.get().debug("Using SQLite deck store", path=config.database_path)
        return SQLiteDurableStore(
            config.database_path, timeout=config.storage.sqlite.timeout_sec
        )

    if backend_type == "memory":
        _Logger.get().debug("Using in-memory deck store")
        return InMemoryDurableStore()

    raise ConfigValidationError(
        f"Unknown storage backend: {backend_type}. Available backends: sqlite, memory",
        field="storage.backend",
        value=backend_type,
    )


def _create_legacy_store(config: Config) -> Optional[LegacyStore]:
    if not config.storage.legacy.enabled:
        return None
    return JsonFileLegacyStore(
        config.legacy_path, max_bytes=config.storage.legacy.max_bytes
    )


def create_deck_store(config: Config) -> DeckStore:
    """Build a new DeckStore for the configured backend.

    Raises:
        ConfigValidationError: If the backend name is unknown
    """
    return DeckStore(_create_durable_store(config), _create_legacy_store(config))


def get_deck_store(config: Optional[Config] = None) -> DeckStore:
    """Return the process-wide DeckStore, creating it on first use.

    Args:
        config: Configuration used on first call (default: Config())
    """
    global _deck_store
    if _deck_store is None:
        _deck_store = create_deck_store(config or Config())
    return _deck_store


def set_deck_store(store: Optional[DeckStore]) -> None:
    """Replace the process-wide DeckStore (None resets it)."""
    global _deck_store
    _deck_store = store


async def close_deck_store() -> None:
    """Close and drop the process-wide DeckStore, if any."""
    global _deck_store
    if _deck_store is not None:
        store = _deck_store
        _deck_store = None
        await store.close()
