"""API routes for progress statistics and dashboard data."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    CardStatsResponse,
    DashboardResponse,
    ProgressResponse,
    StreakResponse,
    UserResponse,
    WeeklyStatsResponse,
)
from backend.database import get_session
from backend.services.dashboard import build_dashboard
from backend.services.sessions import StudySessionService
from backend.srs.streak import StreakMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/weekly", response_model=WeeklyStatsResponse)
async def weekly_stats(db: AsyncSession = Depends(get_session)) -> WeeklyStatsResponse:
    """Sessions, cards, minutes and average accuracy over the last week."""
    stats = await StudySessionService.from_db(db).weekly()
    return WeeklyStatsResponse.model_validate(stats)


@router.get("/daily", response_model=ProgressResponse)
async def daily_progress(
    limit: int | None = None,
    days: int | None = None,
    db: AsyncSession = Depends(get_session),
) -> ProgressResponse:
    """Cards, accuracy and session count per study day over recent sessions."""
    summary = await StudySessionService.from_db(db).progress(limit, days)
    return ProgressResponse.model_validate(summary)


@router.get("/streak", response_model=StreakResponse)
async def study_streak(
    mode: StreakMode | None = None,
    db: AsyncSession = Depends(get_session),
) -> StreakResponse:
    """Consecutive days ending today with a completed study session."""
    info = await StudySessionService.from_db(db).streak(mode=mode)
    return StreakResponse.model_validate(info)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: AsyncSession = Depends(get_session)) -> DashboardResponse:
    data = await build_dashboard(db)
    return DashboardResponse(
        user=UserResponse.model_validate(data.user),
        card_stats=CardStatsResponse.model_validate(data.card_stats),
        weekly_stats=WeeklyStatsResponse.model_validate(data.weekly_stats),
        study_streak=StreakResponse.model_validate(data.study_streak),
        speaking_streak=StreakResponse.model_validate(data.speaking_streak),
        daily_goal_progress=round(data.daily_goal_progress, 1),
    )
