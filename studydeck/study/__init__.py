"""Study package.

Provides the scheduling core and the helpers built on it:
- models: StudyItem data model and record codec
- scheduler: SM-2 spaced repetition algorithm
- due_check: Due item selection and notification text
- stats: Deck statistics
- importer: Bulk CSV import
- deck: Collection helpers (add, search, edit, remove)
- session_tracker: Review session tracking with undo
- progress: Lifetime review count, daily streak and achievements
"""

from __future__ import annotations

from studydeck.study.models import (
    MS_PER_DAY,
    PromptContent,
    ReviewRating,
    StudyItem,
    from_record,
    to_record,
)

from studydeck.study.scheduler import (
    compute_review,
    create_item,
    describe_interval,
    generate_item_id,
    next_ease_factor,
    now_ms,
    preview_interval,
)

from studydeck.study.due_check import (
    count_due,
    iter_due_items,
    due_items,
    get_due_notification,
)

from studydeck.study.stats import DeckStats, deck_stats

from studydeck.study.importer import (
    ImportResult,
    parse_bulk_import,
    parse_bulk_import_detailed,
)

from studydeck.study.session_tracker import (
    ReviewAction,
    ReviewSession,
    SessionTracker,
)

from studydeck.study.progress import (
    ACHIEVEMENTS,
    Achievement,
    StudyProgress,
    active_streak,
    check_streak,
    record_reviews,
)

__all__ = [
    # Models
    "MS_PER_DAY",
    "PromptContent",
    "ReviewRating",
    "StudyItem",
    "from_record",
    "to_record",
    # Scheduler
    "compute_review",
    "create_item",
    "describe_interval",
    "generate_item_id",
    "next_ease_factor",
    "now_ms",
    "preview_interval",
    # Due check
    "count_due",
    "iter_due_items",
    "due_items",
    "get_due_notification",
    # Stats
    "DeckStats",
    "deck_stats",
    # Import
    "ImportResult",
    "parse_bulk_import",
    "parse_bulk_import_detailed",
    # Session tracking
    "ReviewAction",
    "ReviewSession",
    "SessionTracker",
    # Progress
    "ACHIEVEMENTS",
    "Achievement",
    "StudyProgress",
    "active_streak",
    "check_streak",
    "record_reviews",
]
