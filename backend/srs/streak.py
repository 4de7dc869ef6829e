"""Consecutive-day streaks from completion timestamps.

Used the same way for study sessions (end times) and speaking challenge
completions. Two walks are available:

- ``StreakMode.INDEX`` (default): sort newest first and count while the
  i-th event is exactly i whole days old. This assumes one event per day;
  two events on the same day break the streak early.
- ``StreakMode.CALENDAR``: collapse events to calendar days first, then
  count consecutive days ending today.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from backend.config import settings, utcnow

ONE_DAY = timedelta(days=1)


class StreakMode(StrEnum):
    INDEX = "index"
    CALENDAR = "calendar"


@dataclass
class StreakInfo:
    current_streak: int
    total_completed: int
    last_completed: datetime | None


def _index_streak(ordered: list[datetime], now: datetime) -> int:
    streak = 0
    for i, completed_at in enumerate(ordered):
        days_since = (now - completed_at) // ONE_DAY
        if days_since != i:
            break
        streak += 1
    return streak


def _calendar_streak(ordered: list[datetime], now: datetime) -> int:
    days = {completed_at.date() for completed_at in ordered}
    expected = now.date()
    streak = 0
    while expected in days:
        streak += 1
        expected -= ONE_DAY
    return streak


def calculate_streak(
    events: Iterable[datetime],
    now: datetime | None = None,
    mode: StreakMode | str | None = None,
) -> StreakInfo:
    """Derive the current streak and totals from completion timestamps.

    Args:
        events: Completion timestamps, in any order.
        now: Reference time (defaults to utcnow).
        mode: Walk to use (defaults to the ``streak_mode`` setting).

    Returns:
        StreakInfo with the streak, the total count and the latest timestamp.
    """
    now = now or utcnow()
    mode = StreakMode(mode or settings.streak_mode)
    ordered = sorted(events, reverse=True)

    if mode is StreakMode.CALENDAR:
        current = _calendar_streak(ordered, now)
    else:
        current = _index_streak(ordered, now)

    return StreakInfo(
        current_streak=current,
        total_completed=len(ordered),
        last_completed=ordered[0] if ordered else None,
    )
