"""
Base Interfaces for Deck Storage.

This module defines the two storage abstractions the deck store is built on.
Backends can be swapped (SQLite, in-memory) without changing the rest of the
application.

Architecture Context
--------------------
    ┌─────────────────┐     ┌─────────────────┐
    │   CLI / review  │     │   migrate       │
    └────────┬────────┘     └────────┬────────┘
             │                       │
             └───────────┬───────────┘
                         │
              ┌──────────┴──────────┐
              │      DeckStore      │
              └──────────┬──────────┘
                         │
         ┌───────────────┴───────────────┐
         ↓                               ↓
    ┌──────────────┐              ┌──────────────┐
    │ DurableStore │              │ LegacyStore  │
    │ (async, txn) │              │ (one slot)   │
    └──────────────┘              └──────────────┘

Interface Contract
------------------
**DurableStore** (async)
    - open() / close(): Manage the engine connection
    - get_all(): Every stored record (flat dicts, see study.models.to_record)
    - get_meta(key): Read a value from the meta table
    - transaction(): Async context manager yielding a StoreTransaction.
      Commits on normal exit, rolls back if the block raises.

**StoreTransaction**
    - clear(): Remove every record
    - put(record): Insert or replace a record keyed by its ``id``
    - set_meta(key, value): Write a meta value

**LegacyStore** (sync)
    - read(): Raw text in the slot, or None if absent
    - write(text): Replace the slot contents
    - remove(): Delete the slot

Backend failures are raised as StorageError (or StorageUnavailableError
when the engine cannot be opened at all).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional

Record = Dict[str, Any]


class StoreTransaction(ABC):
    """Write operations staged inside one durable transaction."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every record."""
        pass

    @abstractmethod
    async def put(self, record: Record) -> None:
        """Insert or replace a record keyed by record["id"]."""
        pass

    @abstractmethod
    async def set_meta(self, key: str, value: str) -> None:
        """Write a meta value."""
        pass


class DurableStore(ABC):
    """Transactional, asynchronous record store."""

    @abstractmethod
    async def open(self) -> None:
        """Open the engine. Safe to call more than once.

        Raises:
            StorageUnavailableError: If the engine cannot be opened
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the engine. Safe to call when not open."""
        pass

    @abstractmethod
    async def get_all(self) -> List[Record]:
        """Return every stored record."""
        pass

    @abstractmethod
    async def get_meta(self, key: str) -> Optional[str]:
        """Return a meta value, or None if unset."""
        pass

    @abstractmethod
    def transaction(self) -> AsyncContextManager[StoreTransaction]:
        """Open a write transaction.

        Example:
            async with store.transaction() as txn:
                await txn.clear()
                await txn.put(record)
        """
        pass

    async def __aenter__(self) -> "DurableStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class LegacyStore(ABC):
    """Single fixed-key text slot written by the old single-file deck."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the slot contents, or None if the slot is absent."""
        pass

    @abstractmethod
    def write(self, text: str) -> None:
        """Replace the slot contents.

        Raises:
            LegacyQuotaExceededError: If text exceeds the slot capacity
        """
        pass

    @abstractmethod
    def remove(self) -> None:
        """Delete the slot. No-op if already absent."""
        pass
