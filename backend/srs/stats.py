"""Summary counters for the dashboard and progress pages."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Protocol

from backend.config import settings, utcnow
from backend.srs.scheduler import INITIAL_INTERVAL, round_half_up


class ScheduledCard(Protocol):
    interval: int
    next_review_at: datetime


class SessionRecord(Protocol):
    start_time: datetime
    end_time: datetime | None
    cards_studied: int
    accuracy: int


@dataclass
class CardStats:
    total: int = 0
    due: int = 0
    learned: int = 0  # interval beyond the learned threshold
    new: int = 0  # still on the initial one-day interval


@dataclass
class WeeklyStats:
    sessions_count: int = 0
    total_cards: int = 0
    total_time_minutes: int = 0
    average_accuracy: float = 0.0


@dataclass
class DailyActivity:
    day: date
    cards_studied: int = 0
    accuracy: int = 0  # rounded mean over the day's sessions
    session_count: int = 0


@dataclass
class ProgressSummary:
    days: list[DailyActivity] = field(default_factory=list)
    sessions_count: int = 0
    total_time_minutes: int = 0
    average_accuracy: int = 0


def card_stats(cards: Iterable[ScheduledCard], now: datetime | None = None) -> CardStats:
    """Count total, due, learned and new cards."""
    now = now or utcnow()
    stats = CardStats()
    for card in cards:
        stats.total += 1
        if card.next_review_at <= now:
            stats.due += 1
        if card.interval > settings.learned_interval_days:
            stats.learned += 1
        if card.interval == INITIAL_INTERVAL:
            stats.new += 1
    return stats


def _study_minutes(sessions: Iterable[SessionRecord]) -> int:
    """Minutes spent in finished sessions, rounded half up."""
    total_time = timedelta()
    for s in sessions:
        if s.end_time is not None:
            total_time += s.end_time - s.start_time
    return round_half_up(total_time / timedelta(minutes=1))


def weekly_stats(
    sessions: Iterable[SessionRecord],
    now: datetime | None = None,
    window_days: int | None = None,
) -> WeeklyStats:
    """Roll up the sessions started within the last ``window_days``.

    Sessions still running (no end time) add their cards and accuracy but
    no study time.
    """
    now = now or utcnow()
    window_days = settings.stats_window_days if window_days is None else window_days
    cutoff = now - timedelta(days=window_days)
    recent = [s for s in sessions if s.start_time >= cutoff]

    return WeeklyStats(
        sessions_count=len(recent),
        total_cards=sum(s.cards_studied for s in recent),
        total_time_minutes=_study_minutes(recent),
        average_accuracy=sum(s.accuracy for s in recent) / len(recent) if recent else 0.0,
    )


def daily_breakdown(sessions: Iterable[SessionRecord], days: int | None = None) -> list[DailyActivity]:
    """Group sessions by the calendar day they started on.

    Returns one entry per day that has sessions, oldest first, keeping only
    the latest ``days`` of them. A day's accuracy is the rounded mean of its
    sessions' accuracies.
    """
    days = settings.progress_days if days is None else days
    by_day: dict[date, list[SessionRecord]] = defaultdict(list)
    for s in sessions:
        by_day[s.start_time.date()].append(s)

    activity = [
        DailyActivity(
            day=day,
            cards_studied=sum(s.cards_studied for s in group),
            accuracy=round_half_up(sum(s.accuracy for s in group) / len(group)),
            session_count=len(group),
        )
        for day, group in sorted(by_day.items())
    ]
    return activity[-days:] if days > 0 else []


def progress_summary(sessions: Iterable[SessionRecord], days: int | None = None) -> ProgressSummary:
    """Daily breakdown plus totals over the same sessions."""
    sessions = list(sessions)
    return ProgressSummary(
        days=daily_breakdown(sessions, days),
        sessions_count=len(sessions),
        total_time_minutes=_study_minutes(sessions),
        average_accuracy=(
            round_half_up(sum(s.accuracy for s in sessions) / len(sessions)) if sessions else 0
        ),
    )


def goal_progress(learned: int, daily_goal: int) -> float:
    """Percentage of the daily goal reached, capped at 100."""
    if daily_goal <= 0:
        return 100.0
    return min(learned / daily_goal * 100, 100.0)
