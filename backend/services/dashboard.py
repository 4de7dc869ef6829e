"""Dashboard rollup combining card, session and speaking figures."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.user import User
from backend.services.cards import CardService
from backend.services.challenges import SpeakingChallengeService
from backend.services.sessions import StudySessionService
from backend.services.users import UserService
from backend.srs.stats import CardStats, WeeklyStats, goal_progress
from backend.srs.streak import StreakInfo


@dataclass
class Dashboard:
    user: User
    card_stats: CardStats
    weekly_stats: WeeklyStats
    study_streak: StreakInfo
    speaking_streak: StreakInfo

    @property
    def daily_goal_progress(self) -> float:
        return goal_progress(self.card_stats.learned, self.user.daily_goal)


async def build_dashboard(db: AsyncSession, now: datetime | None = None) -> Dashboard:
    """Gather everything the dashboard shows for the current learner."""
    now = now or utcnow()
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)
    return Dashboard(
        user=user,
        card_stats=await CardService.from_db(db).stats(user.selected_language, now),
        weekly_stats=await sessions.weekly(now, user_id=user.id),
        study_streak=await sessions.streak(user_id=user.id, now=now),
        speaking_streak=await SpeakingChallengeService.from_db(db).streak(user_id=user.id, now=now),
    )
