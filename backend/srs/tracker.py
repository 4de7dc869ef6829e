"""Running outcome of a single study session.

The tally is immutable from the caller's point of view: every operation
returns a new ``SessionTally`` and leaves its input untouched.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from backend.config import utcnow
from backend.errors import InvalidStateError
from backend.srs.scheduler import Rating

# A session that ends with nothing studied had nothing to fail.
EMPTY_SESSION_ACCURACY = 100

FINAL_STAT_FIELDS = ("cards_studied", "correct_count", "accuracy")


@dataclass
class SessionTally:
    """Aggregate state of a study session."""

    user_id: int
    start_time: datetime
    end_time: datetime | None = None
    cards_studied: int = 0
    correct_count: int = 0
    accuracy: int = 0  # percent, 0-100

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def as_changes(self) -> dict[str, Any]:
        """Fields to write back to the stored session."""
        return {
            "end_time": self.end_time,
            "cards_studied": self.cards_studied,
            "correct_count": self.correct_count,
            "accuracy": self.accuracy,
        }


def accuracy_percent(correct: int, studied: int) -> int:
    """Percentage of correct ratings, rounded half up."""
    if studied <= 0:
        return 0
    return int(correct * 100 / studied + 0.5)


def start_session(user_id: int, now: datetime | None = None) -> SessionTally:
    return SessionTally(user_id=user_id, start_time=now or utcnow())


def record_rating(tally: SessionTally, rating: Rating | str | int) -> SessionTally:
    """Count one rated card and recompute accuracy.

    Raises:
        InvalidRatingError: If ``rating`` is not a valid grade.
        InvalidStateError: If the session has already ended.
    """
    rating = Rating.parse(rating)
    if not tally.is_active:
        raise InvalidStateError("Cannot record a rating on an ended session")

    studied = tally.cards_studied + 1
    correct = tally.correct_count + (1 if rating.is_correct else 0)
    return replace(
        tally,
        cards_studied=studied,
        correct_count=correct,
        accuracy=accuracy_percent(correct, studied),
    )


def end_session(
    tally: SessionTally,
    final_stats: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> SessionTally:
    """Close the session, merging any caller-supplied final stats.

    Only ``cards_studied``, ``correct_count`` and ``accuracy`` may be
    overridden; other keys are ignored.

    Raises:
        InvalidStateError: If the session has already ended.
    """
    if not tally.is_active:
        raise InvalidStateError("Session has already ended")

    overrides = {k: v for k, v in (final_stats or {}).items() if k in FINAL_STAT_FIELDS}
    ended = replace(tally, end_time=now or utcnow(), **overrides)
    if ended.cards_studied == 0 and "accuracy" not in overrides:
        ended = replace(ended, accuracy=EMPTY_SESSION_ACCURACY)
    if not 0 <= ended.accuracy <= 100:
        raise InvalidStateError(f"Accuracy must be within 0-100, got {ended.accuracy}")
    return ended
