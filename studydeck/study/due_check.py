"""Due item selection.

Picks the items whose scheduled review time has passed, oldest-due
first, so a review session walks the backlog in a deterministic and
fair order.

Everything here is a pure filter over a snapshot of the collection,
so it can be recomputed at any time with the same result."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from studydeck.study.models import StudyItem
from studydeck.study.scheduler import now_ms


def iter_due_items(
    items: Iterable[StudyItem], now: Optional[int] = None
) -> Iterator[StudyItem]:
    """Yield due items in ascending next_review_at order.

    Ties keep their original collection order.

    Args:
        items: Snapshot of the collection
        now: Reference time in ms since epoch (default: wall clock)
    """
    now = now_ms() if now is None else now
    due = [item for item in items if item.next_review_at <= now]
    due.sort(key=lambda item: item.next_review_at)
    yield from due


def due_items(items: Iterable[StudyItem], now: Optional[int] = None) -> List[StudyItem]:
    """Return due items (next_review_at <= now), oldest-due first."""
    return list(iter_due_items(items, now))


def count_due(items: Iterable[StudyItem], now: Optional[int] = None) -> int:
    """Count due items without sorting."""
    now = now_ms() if now is None else now
    return sum(1 for item in items if item.next_review_at <= now)


def get_due_notification(
    items: Iterable[StudyItem], now: Optional[int] = None
) -> Optional[str]:
    """Get a one-line notification for due items.

    Returns:
        Notification string, or None if nothing is due

    Examples:
        >>> get_due_notification([])  # returns None
    """
    due_count = count_due(items, now)

    if due_count == 0:
        return None
    if due_count == 1:
        return "1 card is due for review. Run `studydeck review`"
    return f"{due_count} cards are due for review. Run `studydeck review`"
