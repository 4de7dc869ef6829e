"""Study session persistence, weekly rollups and the study streak."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings
from backend.models.study_session import StudySession
from backend.srs import tracker
from backend.srs.scheduler import Rating
from backend.srs.stats import ProgressSummary, WeeklyStats, progress_summary, weekly_stats
from backend.srs.streak import StreakInfo, StreakMode, calculate_streak
from backend.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)


class StudySessionService:
    def __init__(self, store: RecordStore[StudySession]) -> None:
        self.store = store

    @classmethod
    def from_db(cls, db: AsyncSession) -> "StudySessionService":
        return cls(SqlRecordStore(db, StudySession))

    async def start(
        self,
        user_id: int,
        language: str | None = None,
        now: datetime | None = None,
    ) -> StudySession:
        tally = tracker.start_session(user_id, now)
        session = StudySession(
            user_id=tally.user_id,
            language=language or settings.default_language,
            start_time=tally.start_time,
            cards_studied=tally.cards_studied,
            correct_count=tally.correct_count,
            accuracy=tally.accuracy,
        )
        session = await self.store.insert(session)
        logger.info("Started %s session %d for user %d", session.language, session.id, user_id)
        return session

    async def get(self, session_id: int) -> StudySession:
        return await self.store.get_by_id(session_id)

    async def record_rating(self, session_id: int, rating: Rating | str | int) -> StudySession:
        """Count one rated card against the session.

        Raises:
            NotFoundError: If the session does not exist.
            InvalidStateError: If the session has ended.
            ConcurrentUpdateError: If the session changed since it was read.
        """
        session = await self.store.get_by_id(session_id)
        tally = tracker.record_rating(session.tally(), rating)
        return await self.store.replace(session_id, tally.as_changes(), expected_version=session.version)

    async def end(
        self,
        session_id: int,
        final_stats: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> StudySession:
        """Close a session; ending twice is an error.

        Raises:
            NotFoundError: If the session was never started.
            InvalidStateError: If the session has already ended.
            ConcurrentUpdateError: If the session changed since it was read.
        """
        session = await self.store.get_by_id(session_id)
        tally = tracker.end_session(session.tally(), final_stats, now)
        session = await self.store.replace(session_id, tally.as_changes(), expected_version=session.version)
        logger.info(
            "Ended session %d: %d cards, %d%% accuracy",
            session_id,
            session.cards_studied,
            session.accuracy,
        )
        return session

    async def delete(self, session_id: int) -> None:
        await self.store.remove(session_id)

    async def recent(self, limit: int | None = None, user_id: int | None = None) -> list[StudySession]:
        """Sessions newest first."""
        limit = settings.recent_sessions_limit if limit is None else limit
        criteria = [StudySession.user_id == user_id] if user_id is not None else []
        return await self.store.find(
            *criteria, order_by=StudySession.start_time.desc(), limit=limit
        )

    async def weekly(self, now: datetime | None = None, user_id: int | None = None) -> WeeklyStats:
        """Weekly rollup over sessions that studied at least one card."""
        criteria = [StudySession.cards_studied > 0]
        if user_id is not None:
            criteria.append(StudySession.user_id == user_id)
        return weekly_stats(await self.store.find(*criteria), now)

    async def streak(
        self,
        user_id: int | None = None,
        now: datetime | None = None,
        mode: StreakMode | str | None = None,
    ) -> StreakInfo:
        """Study streak over completed sessions (one completion per end time).

        Sessions closed without studying a card, such as those opened when
        nothing was due, are not completions.
        """
        criteria = [StudySession.end_time.is_not(None), StudySession.cards_studied > 0]
        if user_id is not None:
            criteria.append(StudySession.user_id == user_id)
        sessions = await self.store.find(*criteria)
        return calculate_streak([s.end_time for s in sessions if s.end_time], now, mode)

    async def progress(
        self,
        limit: int | None = None,
        days: int | None = None,
        user_id: int | None = None,
    ) -> ProgressSummary:
        """Per-day activity and totals over the latest ``limit`` sessions that studied cards."""
        limit = settings.progress_sessions_limit if limit is None else limit
        criteria = [StudySession.cards_studied > 0]
        if user_id is not None:
            criteria.append(StudySession.user_id == user_id)
        sessions = await self.store.find(*criteria, order_by=StudySession.start_time.desc(), limit=limit)
        return progress_summary(sessions, days)
