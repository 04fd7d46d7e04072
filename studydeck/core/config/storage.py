"""
Storage configuration.

Provides configuration for the durable deck store (SQLite or in-memory)
and the legacy single-file deck slot that is migrated on first load.
"""

from dataclasses import dataclass, field

DEFAULT_LEGACY_MAX_BYTES = 5 * 1024 * 1024


@dataclass
class SQLiteConfig:
    """SQLite durable store configuration."""

    filename: str = "deck.db"
    timeout_sec: float = 5.0


@dataclass
class LegacyConfig:
    """Legacy deck slot configuration."""

    enabled: bool = True
    filename: str = "flashcards.json"
    max_bytes: int = DEFAULT_LEGACY_MAX_BYTES


@dataclass
class StorageConfig:
    """Storage backend configuration."""

    backend: str = "sqlite"  # sqlite, memory
    sqlite: SQLiteConfig = field(default_factory=SQLiteConfig)
    legacy: LegacyConfig = field(default_factory=LegacyConfig)
