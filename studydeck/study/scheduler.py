"""SM-2 spaced repetition scheduling.

Implements a simplified SuperMemo SM-2 update for study items: given a
recall quality from 0 (blackout) to 5 (perfect), compute the next
interval, the new repetition streak and the new ease factor.

All functions here are pure. The current time is passed in as
milliseconds since epoch (``now``); it defaults to the wall clock."""

from __future__ import annotations

import math
import time
import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Union

from studydeck.core.config.scheduler import SchedulerConfig
from studydeck.core.exceptions import InvalidQualityError
from studydeck.study.models import MS_PER_DAY, PromptContent, StudyItem

MIN_QUALITY: int = 0
MAX_QUALITY: int = 5

_DEFAULT_CONFIG = SchedulerConfig()


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


def validate_quality(quality: Any) -> int:
    """Check that quality is an integer in [0, 5].

    Raises:
        InvalidQualityError: For anything else, including bools.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def _is_pass(quality: int, config: SchedulerConfig) -> bool:
    return quality >= config.pass_threshold


def _next_interval(
    item: StudyItem, quality: int, ease_factor: float, config: SchedulerConfig
) -> int:
    if not _is_pass(quality, config):
        return config.fail_interval_days
    if item.repetition_count == 0:
        return config.first_interval_days
    if item.repetition_count == 1:
        return config.second_interval_days
    return round_half_up(item.interval * ease_factor)


def next_ease_factor(
    ease_factor: float, quality: int, config: Optional[SchedulerConfig] = None
) -> float:
    """Apply the SM-2 ease factor formula.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at
    min_ease_factor.
    """
    config = config or _DEFAULT_CONFIG
    diff = MAX_QUALITY - quality
    adjusted = ease_factor + (0.1 - diff * (0.08 + diff * 0.02))
    return max(config.min_ease_factor, adjusted)


def compute_review(
    item: StudyItem,
    quality: int,
    now: Optional[int] = None,
    config: Optional[SchedulerConfig] = None,
) -> StudyItem:
    """Apply one review to an item.

    Args:
        item: Item being reviewed (not modified)
        quality: Recall quality 0-5; quality >= 3 is a pass
        now: Review time in ms since epoch (default: wall clock)
        config: Scheduling parameters (default: SchedulerConfig())

    Returns:
        A new StudyItem with interval, repetition_count, ease_factor and
        next_review_at updated. All other fields are unchanged.

    Raises:
        InvalidQualityError: If quality is not an integer in [0, 5].

    Examples:
        >>> item = create_item(PromptContent("食べる"), now=0)
        >>> reviewed = compute_review(item, 4, now=0)
        >>> reviewed.interval, reviewed.repetition_count, reviewed.next_review_at
        (1, 1, 86400000)
    """
    config = config or _DEFAULT_CONFIG
    quality = validate_quality(quality)
    now = now_ms() if now is None else now

    ease_factor = max(config.min_ease_factor, item.ease_factor)
    interval = _next_interval(item, quality, ease_factor, config)

    if _is_pass(quality, config):
        repetition_count = item.repetition_count + 1
        ease_factor = next_ease_factor(ease_factor, quality, config)
    else:
        repetition_count = 0
        if config.update_ease_on_failure:
            ease_factor = next_ease_factor(ease_factor, quality, config)

    return replace(
        item,
        interval=interval,
        repetition_count=repetition_count,
        ease_factor=ease_factor,
        next_review_at=now + interval * MS_PER_DAY,
        tags=list(item.tags),
    )


def preview_interval(
    item: StudyItem,
    quality: int,
    config: Optional[SchedulerConfig] = None,
) -> int:
    """Interval compute_review would assign, without committing the rating.

    Used to label review buttons ("Hard: 6 days").
    """
    config = config or _DEFAULT_CONFIG
    quality = validate_quality(quality)
    ease_factor = max(config.min_ease_factor, item.ease_factor)
    return _next_interval(item, quality, ease_factor, config)


def generate_item_id(now: Optional[int] = None) -> str:
    """Create an id from a millisecond timestamp and a random suffix."""
    now = now_ms() if now is None else now
    return f"{now}{uuid.uuid4().hex[:12]}"


def _dedupe_tags(tags: Optional[Iterable[str]]) -> List[str]:
    seen: List[str] = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def create_item(
    content: Union[PromptContent, Mapping[str, Any]],
    tags: Optional[Iterable[str]] = None,
    now: Optional[int] = None,
    config: Optional[SchedulerConfig] = None,
) -> StudyItem:
    """Create a new, immediately due study item.

    Args:
        content: PromptContent or a mapping with primary/reading/romanized/meaning
        tags: Optional labels (duplicates and blanks dropped)
        now: Creation time in ms since epoch (default: wall clock)
        config: Scheduling parameters for the initial ease factor

    Returns:
        StudyItem with interval=0, repetition_count=0 and next_review_at=now
    """
    config = config or _DEFAULT_CONFIG
    now = now_ms() if now is None else now
    if not isinstance(content, PromptContent):
        content = PromptContent.from_mapping(content)

    return StudyItem(
        id=generate_item_id(now),
        content=content,
        interval=0,
        repetition_count=0,
        ease_factor=config.initial_ease_factor,
        next_review_at=now,
        tags=_dedupe_tags(tags),
    )


def describe_interval(days: int) -> str:
    """Format an interval as a short human-readable label."""
    if days <= 0:
        return "now"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        weeks = days // 7
        return f"{weeks} week{'s' if weeks > 1 else ''}"
    if days < 365:
        months = days // 30
        return f"{months} month{'s' if months > 1 else ''}"
    years = days // 365
    return f"{years} year{'s' if years > 1 else ''}"
