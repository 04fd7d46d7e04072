"""Review session with undo.

Walks the due items of a deck snapshot one at a time, applies ratings
through the scheduler and keeps an in-memory undo stack so a learner
can take back a mis-click. Undo history is session-only and not
persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Any

from studydeck.core.config.scheduler import SchedulerConfig
from studydeck.study.deck import replace_item
from studydeck.study.due_check import due_items
from studydeck.study.models import ReviewRating, StudyItem
from studydeck.study.scheduler import compute_review, now_ms, preview_interval


@dataclass
class ReviewAction:
    """A single review that can be undone.

    Attributes:
        item_id: ID of the reviewed item
        rating: Button pressed
        quality: SM-2 quality (0-5) the button mapped to
        position: Index of the item in the session queue
        prev_state: Item before this review (restored on undo)
        timestamp: When the review occurred
    """

    item_id: str
    rating: ReviewRating
    quality: int
    position: int = 0
    prev_state: Optional[StudyItem] = None
    timestamp: datetime = field(default_factory=datetime.now)


class SessionTracker:
    """Tracks a review session with undo capability.

    Attributes:
        start_time: When the session started
        actions: List of review actions (undo stack)
        max_undo: Maximum number of undoable actions
    """

    DEFAULT_MAX_UNDO = 50

    def __init__(self, max_undo: int = DEFAULT_MAX_UNDO) -> None:
        self.start_time = datetime.now()
        self.actions: List[ReviewAction] = []
        self.max_undo = max_undo
        self._rating_counts: Dict[ReviewRating, int] = {}

    def record_review(
        self,
        item_id: str,
        rating: ReviewRating,
        quality: int,
        position: int = 0,
        prev_state: Optional[StudyItem] = None,
    ) -> ReviewAction:
        """Record a review action."""
        action = ReviewAction(
            item_id=item_id,
            rating=rating,
            quality=quality,
            position=position,
            prev_state=prev_state,
        )
        self.actions.append(action)
        self._rating_counts[rating] = self._rating_counts.get(rating, 0) + 1

        # Oldest actions fall off; totals keep counting them
        if len(self.actions) > self.max_undo:
            self.actions.pop(0)

        return action

    def undo(self) -> Optional[ReviewAction]:
        """Pop the most recent review, or None if the stack is empty."""
        if not self.actions:
            return None

        action = self.actions.pop()
        if action.rating in self._rating_counts:
            self._rating_counts[action.rating] -= 1
            if self._rating_counts[action.rating] <= 0:
                del self._rating_counts[action.rating]

        return action

    def can_undo(self) -> bool:
        return len(self.actions) > 0

    @property
    def cards_reviewed(self) -> int:
        """Total items reviewed this session."""
        return sum(self._rating_counts.values())

    @property
    def rating_counts(self) -> Dict[ReviewRating, int]:
        return self._rating_counts.copy()

    @property
    def correct_count(self) -> int:
        """Count of Hard/Good/Easy ratings."""
        return sum(
            count
            for rating, count in self._rating_counts.items()
            if rating is not ReviewRating.AGAIN
        )

    @property
    def accuracy(self) -> float:
        """Percentage of ratings other than Again."""
        total = self.cards_reviewed
        if total == 0:
            return 0.0
        return (self.correct_count / total) * 100

    @property
    def session_duration_seconds(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def get_session_stats(self) -> Dict[str, Any]:
        """Get session statistics as a plain dictionary."""
        return {
            "start_time": self.start_time.isoformat(),
            "duration_seconds": self.session_duration_seconds,
            "cards_reviewed": self.cards_reviewed,
            "correct_count": self.correct_count,
            "accuracy": round(self.accuracy, 1),
            "rating_breakdown": {
                rating.value: count for rating, count in self._rating_counts.items()
            },
            "undo_available": self.can_undo(),
        }


class ReviewSession:
    """One pass over the items due at session start.

    The session owns a working copy of the collection. After each
    rate() or undo(), ``items`` is the collection to persist.

    Example:
        session = ReviewSession(await store.load())
        while not session.is_complete:
            show(session.current)
            session.rate(ReviewRating.GOOD)
            await store.save(session.items)
    """

    def __init__(
        self,
        items: Sequence[StudyItem],
        now: Optional[int] = None,
        config: Optional[SchedulerConfig] = None,
        limit: Optional[int] = None,
        tracker: Optional[SessionTracker] = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.now = now_ms() if now is None else now
        self.items: List[StudyItem] = list(items)
        queue = due_items(self.items, self.now)
        if limit is not None and limit > 0:
            queue = queue[:limit]
        self._queue: List[str] = [item.id for item in queue]
        self.position = 0
        self.tracker = tracker or SessionTracker()

    @property
    def total(self) -> int:
        """Number of items queued for this session."""
        return len(self._queue)

    @property
    def remaining(self) -> int:
        return self.total - self.position

    @property
    def is_complete(self) -> bool:
        return self.position >= self.total

    @property
    def current(self) -> Optional[StudyItem]:
        """Item awaiting a rating, or None when the session is complete."""
        if self.is_complete:
            return None
        item_id = self._queue[self.position]
        return next(item for item in self.items if item.id == item_id)

    def quality_for(self, rating: ReviewRating) -> int:
        return self.config.rating_qualities[rating.value]

    def previews(self) -> Dict[ReviewRating, int]:
        """Interval in days each button would give the current item."""
        item = self.current
        if item is None:
            return {}
        return {
            rating: preview_interval(item, self.quality_for(rating), self.config)
            for rating in ReviewRating
        }

    def rate(self, rating: ReviewRating, now: Optional[int] = None) -> StudyItem:
        """Apply a rating to the current item and advance.

        Args:
            rating: Button pressed
            now: Review time in ms (default: wall clock at the rating,
                not the session start used to pick due items)

        Returns:
            The updated item

        Raises:
            RuntimeError: If the session is already complete
        """
        item = self.current
        if item is None:
            raise RuntimeError("Review session is complete")

        quality = self.quality_for(rating)
        updated = compute_review(
            item, quality, now=now_ms() if now is None else now, config=self.config
        )
        self.tracker.record_review(
            item.id, rating, quality, position=self.position, prev_state=item
        )
        self.items = replace_item(self.items, updated)
        self.position += 1
        return updated

    def undo(self) -> Optional[StudyItem]:
        """Restore the previously rated item and step back to it.

        Returns:
            The restored item, or None if there is nothing to undo
        """
        action = self.tracker.undo()
        if action is None or action.prev_state is None:
            return None

        self.items = replace_item(self.items, action.prev_state)
        self.position = action.position
        return action.prev_state
