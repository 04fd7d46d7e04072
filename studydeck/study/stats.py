"""Deck statistics.

Counts items in the two buckets the review screen shows: new items
(never passed, or reset by a failure) and review items that are due.

The Anki-style three-bucket model (new / learning / review) is collapsed
into two buckets; ``learning`` is always reported as 0."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Optional

from studydeck.study.models import StudyItem
from studydeck.study.scheduler import now_ms


@dataclass(frozen=True)
class DeckStats:
    """Counts for one deck snapshot.

    Attributes:
        new: Items with repetition_count == 0
        learning: Always 0
        review: Items with repetition_count > 0 that are due
        total: Number of items
    """

    new: int = 0
    learning: int = 0
    review: int = 0
    total: int = 0

    @property
    def scheduled(self) -> int:
        """Items already passed at least once and not yet due."""
        return self.total - self.new - self.learning - self.review

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def deck_stats(items: Iterable[StudyItem], now: Optional[int] = None) -> DeckStats:
    """Compute DeckStats for a collection at time ``now``."""
    now = now_ms() if now is None else now
    new = review = total = 0

    for item in items:
        total += 1
        if item.repetition_count == 0:
            new += 1
        elif item.next_review_at <= now:
            review += 1

    return DeckStats(new=new, learning=0, review=review, total=total)
