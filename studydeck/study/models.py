"""Study item data model and record codec.

A StudyItem is the scheduled unit: the learner-facing content plus the
SM-2 scheduling state. Items are persisted field-for-field as flat
records (see to_record / from_record)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

MS_PER_DAY: int = 86_400_000

# Keys written by the original browser app to its legacy storage slot
_LEGACY_KEYS = {
    "kanji": "primary",
    "kana": "reading",
    "romaji": "romanized",
    "meanings": "meaning",
    "repetition": "repetition_count",
    "ef": "ease_factor",
    "nextReview": "next_review_at",
}


class ReviewRating(Enum):
    """Review buttons shown to the learner.

    Each button maps to an SM-2 quality through
    SchedulerConfig.rating_qualities.
    """

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def from_key(cls, key: str) -> "ReviewRating":
        """Resolve a button from its name or its 1-4 position."""
        key = key.strip().lower()
        positions = {"1": cls.AGAIN, "2": cls.HARD, "3": cls.GOOD, "4": cls.EASY}
        if key in positions:
            return positions[key]
        return cls(key)

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class PromptContent:
    """Learning-facing content of an item. Opaque to the scheduler.

    Attributes:
        primary: Primary form (e.g. the kanji spelling)
        reading: Secondary reading (e.g. kana), may be empty
        romanized: Romanized reading
        meaning: Translated meaning
    """

    primary: str
    reading: str = ""
    romanized: str = ""
    meaning: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PromptContent":
        return cls(
            primary=str(data.get("primary") or ""),
            reading=str(data.get("reading") or ""),
            romanized=str(data.get("romanized") or ""),
            meaning=str(data.get("meaning") or ""),
        )


@dataclass
class StudyItem:
    """A scheduled study item.

    Attributes:
        id: Unique, immutable identifier
        content: Learning-facing content
        interval: Whole days until next review (>= 0)
        repetition_count: Consecutive successful reviews since last reset
        ease_factor: Multiplicative interval growth factor (>= 1.3)
        next_review_at: Due time in milliseconds since epoch
        tags: Free-form labels
    """

    id: str
    content: PromptContent
    interval: int = 0
    repetition_count: int = 0
    ease_factor: float = 2.5
    next_review_at: int = 0
    tags: List[str] = field(default_factory=list)

    @property
    def primary(self) -> str:
        return self.content.primary

    @property
    def is_new(self) -> bool:
        return self.repetition_count == 0

    def is_due(self, now: int) -> bool:
        return self.next_review_at <= now


def to_record(item: StudyItem) -> Dict[str, Any]:
    """Serialize an item as a flat record."""
    return {
        "id": item.id,
        "primary": item.content.primary,
        "reading": item.content.reading,
        "romanized": item.content.romanized,
        "meaning": item.content.meaning,
        "interval": item.interval,
        "repetition_count": item.repetition_count,
        "ease_factor": item.ease_factor,
        "next_review_at": item.next_review_at,
        "tags": list(item.tags),
    }


def _normalize_keys(record: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in record.items():
        normalized.setdefault(_LEGACY_KEYS.get(key, key), value)
    return normalized


def from_record(record: Mapping[str, Any]) -> Optional[StudyItem]:
    """Deserialize a record, accepting the legacy browser-app layout too.

    Returns:
        The StudyItem, or None if the record lacks an id or primary
        content or carries non-numeric scheduling fields.
    """
    if not isinstance(record, Mapping):
        return None

    data = _normalize_keys(record)
    item_id = data.get("id")
    content = PromptContent.from_mapping(data)
    if item_id in (None, "") or not content.primary:
        return None

    tags = data.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]

    try:
        return StudyItem(
            id=str(item_id),
            content=content,
            interval=max(0, int(data.get("interval") or 0)),
            repetition_count=max(0, int(data.get("repetition_count") or 0)),
            ease_factor=float(data.get("ease_factor") or 2.5),
            next_review_at=int(data.get("next_review_at") or 0),
            tags=[str(tag) for tag in tags],
        )
    except (TypeError, ValueError):
        return None
