"""Four-grade spaced repetition scheduler.

A simplified SM-2 variant. Each review maps the card's current interval and
ease factor to new values:

- Again: interval resets to 1 day, ease drops by 0.2, difficulty +1.
- Hard:  interval grows by 20%, ease drops by 0.15.
- Good:  interval is multiplied by the ease factor.
- Easy:  interval is multiplied by ease * 1.3, ease grows by 0.15, difficulty -0.5.

The ease factor never falls below 1.3. The interval stays between one day
and the configured maximum (100 years by default) so review dates stay
representable; the ease factor itself has no ceiling.
Difficulty is a free-running counter with no bounds.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from backend.config import settings, utcnow
from backend.errors import InvalidRatingError

INITIAL_INTERVAL = 1
INITIAL_EASE_FACTOR = 2.5

MIN_INTERVAL = 1  # days
MIN_EASE_FACTOR = 1.3

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15
HARD_INTERVAL_MULTIPLIER = 1.2
EASY_INTERVAL_BONUS = 1.3

AGAIN_DIFFICULTY_DELTA = 1.0
EASY_DIFFICULTY_DELTA = -0.5


class Rating(StrEnum):
    """Learner's self-assessed recall quality, ordered worst to best."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def grade(self) -> int:
        """Keyboard grade 1-4."""
        return _GRADES.index(self) + 1

    @property
    def is_correct(self) -> bool:
        """Good and Easy count as correct recalls."""
        return self in (Rating.GOOD, Rating.EASY)

    @classmethod
    def parse(cls, value: "Rating | str | int") -> "Rating":
        """Coerce a rating name or keyboard grade (1-4) into a Rating.

        Raises:
            InvalidRatingError: If the value is not one of the four grades.
        """
        if isinstance(value, Rating):
            return value
        if isinstance(value, bool):
            raise InvalidRatingError(value)
        if isinstance(value, int):
            if 1 <= value <= len(_GRADES):
                return _GRADES[value - 1]
            raise InvalidRatingError(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text.isascii() and text.isdigit():
                return cls.parse(int(text))
            try:
                return cls(text)
            except ValueError:
                raise InvalidRatingError(value) from None
        raise InvalidRatingError(value)


_GRADES = (Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY)


@dataclass
class CardState:
    """The scheduling state of a card."""

    interval: int  # Days until the next review, always >= 1
    ease_factor: float  # Interval growth multiplier, always >= 1.3
    difficulty: float  # Unbounded; +1 on Again, -0.5 on Easy
    next_review_at: datetime  # Card is due once this is in the past

    @classmethod
    def new(cls, now: datetime | None = None) -> "CardState":
        """State of a freshly created card, due immediately."""
        return cls(
            interval=INITIAL_INTERVAL,
            ease_factor=INITIAL_EASE_FACTOR,
            difficulty=0.0,
            next_review_at=now or utcnow(),
        )

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now


@dataclass
class ReviewResult:
    """The result of applying a review to a card."""

    new_state: CardState
    rating: Rating
    interval_days: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    ``round()`` uses banker's rounding (``round(2.5) == 2``), which would
    shorten intervals that land exactly on a half day.
    """
    return math.floor(value + 0.5)


class Scheduler:
    """Simplified four-grade spaced repetition scheduler."""

    def __init__(self, min_ease_factor: float = MIN_EASE_FACTOR, max_interval: int | None = None) -> None:
        self.min_ease_factor = min_ease_factor
        self.max_interval = settings.max_interval_days if max_interval is None else max_interval

    def review(
        self,
        state: CardState,
        rating: Rating | str | int,
        review_time: datetime | None = None,
    ) -> ReviewResult:
        """Apply a review rating to a card state.

        Args:
            state: Current card state. Not modified.
            rating: Again/Hard/Good/Easy, by member, name or grade 1-4.
            review_time: When the review happened (defaults to now).

        Returns:
            ReviewResult with the new card state.

        Raises:
            InvalidRatingError: If ``rating`` is not one of the four grades.
        """
        rating = Rating.parse(rating)
        review_time = review_time or utcnow()

        interval = state.interval
        ease = state.ease_factor
        difficulty = state.difficulty

        if rating is Rating.AGAIN:
            interval = MIN_INTERVAL
            ease = max(self.min_ease_factor, ease - AGAIN_EASE_PENALTY)
            difficulty += AGAIN_DIFFICULTY_DELTA
        elif rating is Rating.HARD:
            interval = round_half_up(interval * HARD_INTERVAL_MULTIPLIER)
            ease = max(self.min_ease_factor, ease - HARD_EASE_PENALTY)
        elif rating is Rating.GOOD:
            interval = round_half_up(interval * ease)
        else:
            interval = round_half_up(interval * ease * EASY_INTERVAL_BONUS)
            ease = ease + EASY_EASE_BONUS
            difficulty += EASY_DIFFICULTY_DELTA

        interval = min(max(MIN_INTERVAL, interval), self.max_interval)

        # Whole calendar days, keeping the time of day of the review
        next_review_at = review_time + timedelta(days=interval)

        return ReviewResult(
            new_state=CardState(
                interval=interval,
                ease_factor=ease,
                difficulty=difficulty,
                next_review_at=next_review_at,
            ),
            rating=rating,
            interval_days=interval,
        )


_default_scheduler = Scheduler()


def schedule(
    state: CardState,
    rating: Rating | str | int,
    now: datetime | None = None,
) -> CardState:
    """Return the state a card moves to after being rated at ``now``."""
    return _default_scheduler.review(state, rating, review_time=now).new_state
