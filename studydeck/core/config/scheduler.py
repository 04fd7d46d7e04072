"""
Scheduler configuration.

Named parameters of the simplified SM-2 update. The defaults reproduce
the production scheduling behavior; every value can be overridden in
studydeck.yaml under the ``scheduler`` key.
"""

from dataclasses import dataclass, field
from typing import Dict


def _default_rating_qualities() -> Dict[str, int]:
    return {"again": 1, "hard": 3, "good": 4, "easy": 5}


@dataclass
class SchedulerConfig:
    """Spaced repetition scheduling parameters."""

    initial_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    first_interval_days: int = 1
    second_interval_days: int = 6
    fail_interval_days: int = 1
    pass_threshold: int = 3
    # False keeps the ease factor untouched on a failed review
    update_ease_on_failure: bool = False
    # Review button -> SM-2 quality; the 1/2/4/5 variant is also common
    rating_qualities: Dict[str, int] = field(default_factory=_default_rating_qualities)
