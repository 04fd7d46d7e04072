"""Legacy single-file deck slot.

Older decks were kept as one JSON array under a fixed key. The slot is
only read during migration; write() exists so tests and tools can seed it."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from studydeck.core.config.storage import DEFAULT_LEGACY_MAX_BYTES
from studydeck.core.exceptions import LegacyQuotaExceededError, StorageError
from studydeck.storage.base import LegacyStore


class JsonFileLegacyStore(LegacyStore):
    """Legacy slot stored as a single UTF-8 file.

    Args:
        path: Slot file
        max_bytes: Capacity ceiling enforced on write()
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_bytes: int = DEFAULT_LEGACY_MAX_BYTES,
    ) -> None:
        self.path = Path(path)
        self.max_bytes = max_bytes

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read legacy deck {self.path}: {e}") from e

    def write(self, text: str) -> None:
        data = text.encode("utf-8")
        if len(data) > self.max_bytes:
            raise LegacyQuotaExceededError(
                f"Legacy slot holds at most {self.max_bytes} bytes, got {len(data)}"
            )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write legacy deck {self.path}: {e}") from e

    def remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove legacy deck {self.path}: {e}") from e
