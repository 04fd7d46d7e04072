"""In-memory storage backends.

Used for throwaway sessions (``storage.backend: memory``) and as test
doubles. Both stores support fault injection so callers can exercise the
unavailable-engine, failed-write and quota paths."""

from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from studydeck.core.exceptions import (
    LegacyQuotaExceededError,
    StorageError,
    StorageUnavailableError,
)
from studydeck.storage.base import DurableStore, LegacyStore, Record, StoreTransaction


class _MemoryTransaction(StoreTransaction):
    """Stages writes against a copy of the store's state."""

    def __init__(self, store: "InMemoryDurableStore") -> None:
        self._store = store
        self.records: Dict[str, Record] = copy.deepcopy(store._records)
        self.meta: Dict[str, str] = dict(store._meta)

    async def clear(self) -> None:
        self.records.clear()

    async def put(self, record: Record) -> None:
        self._store.put_calls += 1
        fail_after = self._store.fail_after_puts
        if fail_after is not None and self._store.put_calls > fail_after:
            raise StorageError("Injected write failure")
        self.records[str(record["id"])] = copy.deepcopy(record)

    async def set_meta(self, key: str, value: str) -> None:
        self.meta[key] = value


class InMemoryDurableStore(DurableStore):
    """Durable store held in process memory.

    A transaction works on a copy of the state; the copy replaces the
    live state only when the block exits normally.

    Args:
        available: When False, open() raises StorageUnavailableError
        fail_after_puts: Raise StorageError on the put after this many
            successful puts (counted across transactions). None disables.
        fail_next_reads: Number of upcoming get_all() calls that raise
            StorageError
    """

    def __init__(
        self,
        available: bool = True,
        fail_after_puts: Optional[int] = None,
        fail_next_reads: int = 0,
    ) -> None:
        self.available = available
        self.fail_after_puts = fail_after_puts
        self.fail_next_reads = fail_next_reads
        self.put_calls = 0
        self.is_open = False
        self._records: Dict[str, Record] = {}
        self._meta: Dict[str, str] = {}

    async def open(self) -> None:
        if not self.available:
            raise StorageUnavailableError("In-memory store marked unavailable")
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False

    def _require_open(self) -> None:
        if not self.is_open:
            raise StorageError("Store is not open")

    async def get_all(self) -> List[Record]:
        self._require_open()
        if self.fail_next_reads > 0:
            self.fail_next_reads -= 1
            raise StorageError("Injected read failure")
        return [copy.deepcopy(record) for record in self._records.values()]

    async def get_meta(self, key: str) -> Optional[str]:
        self._require_open()
        return self._meta.get(key)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        self._require_open()
        txn = _MemoryTransaction(self)
        yield txn
        self._records = txn.records
        self._meta = txn.meta


class InMemoryLegacyStore(LegacyStore):
    """Legacy slot held in process memory.

    Args:
        text: Initial slot contents (None means absent)
        max_bytes: Capacity ceiling for write()
    """

    def __init__(self, text: Optional[str] = None, max_bytes: Optional[int] = None) -> None:
        self.text = text
        self.max_bytes = max_bytes

    def read(self) -> Optional[str]:
        return self.text

    def write(self, text: str) -> None:
        size = len(text.encode("utf-8"))
        if self.max_bytes is not None and size > self.max_bytes:
            raise LegacyQuotaExceededError(
                f"Legacy slot holds at most {self.max_bytes} bytes, got {size}"
            )
        self.text = text

    def remove(self) -> None:
        self.text = None
