"""Study progress.

Tracks lifetime review totals and the daily streak across sessions:
- cards_reviewed: Ratings given over all sessions
- current_streak: Consecutive calendar days with at least one review
- last_active_date: Last day a review was recorded
- unlocked_achievements: Milestone IDs already reached

A streak continues when the previous active day was yesterday and
restarts at 1 after any longer gap. Dates are local calendar days."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Achievement:
    """A milestone unlocked by reviewing."""

    id: str
    title: str
    description: str


ACHIEVEMENTS: Tuple[Achievement, ...] = (
    Achievement("memory_master", "Memory Master", "Review 50 items"),
    Achievement("on_fire", "On Fire", "Reach a 3-day streak"),
    Achievement("dedicated", "Dedicated", "Reach a 7-day streak"),
)


@dataclass
class StudyProgress:
    """Lifetime progress persisted alongside the deck.

    Attributes:
        cards_reviewed: Total ratings given
        current_streak: Streak length as of last_active_date
        last_active_date: ISO date (YYYY-MM-DD) of the last review
        unlocked_achievements: IDs of reached achievements
    """

    cards_reviewed: int = 0
    current_streak: int = 0
    last_active_date: Optional[str] = None
    unlocked_achievements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards_reviewed": self.cards_reviewed,
            "current_streak": self.current_streak,
            "last_active_date": self.last_active_date,
            "unlocked_achievements": list(self.unlocked_achievements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudyProgress":
        """Build progress from a stored dict.

        Raises:
            ValueError: If a field has the wrong shape
        """
        if not isinstance(data, dict):
            raise ValueError("Study progress must be an object")
        last_active = data.get("last_active_date")
        if last_active is not None:
            last_active = date.fromisoformat(str(last_active)).isoformat()
        return cls(
            cards_reviewed=int(data.get("cards_reviewed", 0)),
            current_streak=int(data.get("current_streak", 0)),
            last_active_date=last_active,
            unlocked_achievements=[str(a) for a in data.get("unlocked_achievements", [])],
        )


def day_of(ms: Optional[int] = None) -> date:
    """Local calendar day for a timestamp in ms (default: today)."""
    if ms is None:
        return date.today()
    return datetime.fromtimestamp(ms / 1000).date()


def check_streak(progress: StudyProgress, today: date) -> Tuple[int, bool]:
    """Streak after activity on ``today``.

    Returns:
        (streak, is_new_day)
    """
    if progress.last_active_date == today.isoformat():
        return progress.current_streak, False

    yesterday = (today - timedelta(days=1)).isoformat()
    if progress.last_active_date == yesterday:
        return progress.current_streak + 1, True
    return 1, True


def active_streak(progress: StudyProgress, today: date) -> int:
    """Streak still alive on ``today`` (0 once a whole day was missed)."""
    if progress.last_active_date is None:
        return 0
    last_active = date.fromisoformat(progress.last_active_date)
    if today - last_active > timedelta(days=1):
        return 0
    return progress.current_streak


def new_achievements(progress: StudyProgress) -> List[Achievement]:
    """Achievements reached by progress but not yet unlocked."""
    reached = {
        "memory_master": progress.cards_reviewed >= 50,
        "on_fire": progress.current_streak >= 3,
        "dedicated": progress.current_streak >= 7,
    }
    return [
        achievement
        for achievement in ACHIEVEMENTS
        if reached[achievement.id]
        and achievement.id not in progress.unlocked_achievements
    ]


def record_reviews(progress: StudyProgress, count: int, today: date) -> StudyProgress:
    """Return progress after ``count`` reviews on ``today``.

    The input is not modified. A count of zero or less leaves progress
    unchanged, so a session whose ratings were all undone does not
    extend the streak.
    """
    if count <= 0:
        return progress

    streak, _ = check_streak(progress, today)
    updated = StudyProgress(
        cards_reviewed=progress.cards_reviewed + count,
        current_streak=streak,
        last_active_date=today.isoformat(),
        unlocked_achievements=list(progress.unlocked_achievements),
    )
    updated.unlocked_achievements.extend(a.id for a in new_achievements(updated))
    return updated
