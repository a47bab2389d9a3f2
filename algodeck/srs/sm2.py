"""SM-2 (SuperMemo 2) scheduler with configurable first intervals.

Reference: https://super-memory.com/english/ol/sm2.htm

Key concepts:
- Repetition: count of consecutive passing reviews; reset by a failing rating.
- Interval: days until the next review. Failing ratings use sub-day intervals
  taken from the interval configuration (minutes / 1440).
- Ease factor: per-item growth multiplier, never below 1.3.
- Ratings map to SM-2 quality: again=0, hard=2, good=3, easy=5.

"hard" has quality 2 and therefore takes the failing branch, even though it is
presented to the user as a short near-pass interval.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from algodeck.config import utcnow
from algodeck.models.enums import Rating
from algodeck.srs.intervals import IntervalConfig

MIN_EASE_FACTOR = 1.3
PASSING_QUALITY = 3
MINUTES_PER_DAY = 1440

RATING_QUALITY: dict[Rating, int] = {
    Rating.AGAIN: 0,
    Rating.HARD: 2,
    Rating.GOOD: 3,
    Rating.EASY: 5,
}


@dataclass(frozen=True)
class SchedulingState:
    """The SM-2 fields of an item."""

    repetition: int
    interval: float  # days, may be fractional
    ease_factor: float


@dataclass(frozen=True)
class ScheduleResult:
    """The state after applying a rating, plus the resulting due date."""

    state: SchedulingState
    next_review_date: str  # YYYY-MM-DD


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return math.floor(value + 0.5)


def quality_of(rating: Rating) -> int:
    return RATING_QUALITY[rating]


def compute_next(
    rating: Rating,
    state: SchedulingState,
    config: IntervalConfig,
    now: datetime | None = None,
) -> ScheduleResult:
    """Apply a rating to an item's scheduling state.

    Args:
        rating: The submitted rating.
        state: The item's current scheduling state.
        config: Interval configuration snapshot to schedule with.
        now: Reference time for the due date (defaults to utcnow).

    Returns:
        ScheduleResult with the new state and next review date.
    """
    quality = quality_of(rating)
    now = now or utcnow()

    if quality < PASSING_QUALITY:
        repetition = 0
        minutes = config.again if rating == Rating.AGAIN else config.hard
        interval = minutes / MINUTES_PER_DAY
        ease_factor = state.ease_factor
    else:
        repetition = state.repetition + 1
        first_interval = config.easy if quality >= 5 else config.good
        if repetition == 1:
            interval = float(first_interval)
        elif repetition == 2:
            interval = float(first_interval * 2)
        else:
            interval = float(round_half_up(state.interval * state.ease_factor))
        ease_factor = state.ease_factor + (
            0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        )

    ease_factor = round(max(MIN_EASE_FACTOR, ease_factor), 2)

    return ScheduleResult(
        state=SchedulingState(
            repetition=repetition,
            interval=interval,
            ease_factor=ease_factor,
        ),
        next_review_date=next_review_date(interval, now),
    )


def next_review_date(interval: float, now: datetime) -> str:
    """Advance ``now`` by a rounded interval and return the calendar date."""
    if interval < 1:
        due = now + timedelta(minutes=round_half_up(interval * MINUTES_PER_DAY))
    else:
        due = now + timedelta(days=round_half_up(interval))
    return due.date().isoformat()
