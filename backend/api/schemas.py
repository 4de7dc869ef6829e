"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

RatingName = Literal["again", "hard", "good", "easy"]
DifficultyLevel = Literal["beginner", "intermediate", "advanced"]

# --- Cards ---


class CardCreateRequest(BaseModel):
    """Request to create a new card."""

    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    language: str | None = None
    category: str = "general"


class CardUpdateRequest(BaseModel):
    """Editable display fields; scheduling fields are not accepted."""

    front: str | None = None
    back: str | None = None
    language: str | None = None
    category: str | None = None


class CardResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    language: str
    category: str
    front: str
    back: str
    difficulty: float
    interval: int
    ease_factor: float
    next_review_at: datetime
    version: int


class RatingRequest(BaseModel):
    """A rating by name or keyboard grade (1-4)."""

    rating: RatingName | int


class ReviewResponse(BaseModel):
    card: CardResponse
    rating: RatingName
    interval_days: int


class CardStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    total: int
    due: int
    learned: int
    new: int


# --- Session ---


class SessionStartRequest(BaseModel):
    language: str | None = None


class StudySessionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    language: str
    start_time: datetime
    end_time: datetime | None
    cards_studied: int
    correct_count: int
    accuracy: int


class SessionStartResponse(BaseModel):
    """Response when starting a new study session."""

    session: StudySessionResponse
    due_cards: int
    first_card: CardResponse | None = None  # None: nothing to review, session already closed


class SessionRateRequest(RatingRequest):
    card_id: int


class SessionRateResponse(BaseModel):
    """Response after rating the presented card."""

    card: CardResponse
    interval_days: int
    next_review_at: datetime
    session: StudySessionResponse
    next_card: CardResponse | None
    session_complete: bool


class SessionEndRequest(BaseModel):
    """Optional overrides of the running session stats."""

    cards_studied: int | None = Field(default=None, ge=0)
    correct_count: int | None = Field(default=None, ge=0)
    accuracy: int | None = Field(default=None, ge=0, le=100)


# --- Stats ---


class WeeklyStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    sessions_count: int
    total_cards: int
    total_time_minutes: int
    average_accuracy: float


class DailyActivityResponse(BaseModel):
    model_config = {"from_attributes": True}

    day: date
    cards_studied: int
    accuracy: int
    session_count: int


class ProgressResponse(BaseModel):
    """Per-day activity, oldest first, with totals over the same sessions."""

    model_config = {"from_attributes": True}

    days: list[DailyActivityResponse]
    sessions_count: int
    total_time_minutes: int
    average_accuracy: int


class StreakResponse(BaseModel):
    model_config = {"from_attributes": True}

    current_streak: int
    total_completed: int
    last_completed: datetime | None


# --- Speaking ---


class ChallengeCreateRequest(BaseModel):
    prompt: str = Field(min_length=1)
    language: str | None = None
    difficulty: DifficultyLevel = "beginner"
    audio_url: str | None = None


class ChallengeResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    language: str
    prompt: str
    difficulty: str
    audio_url: str | None


class DailyChallengeResponse(BaseModel):
    challenge: ChallengeResponse
    is_completed: bool
    completed_at: datetime | None = None


class ChallengeCompleteRequest(BaseModel):
    audio_url: str | None = None


class CompletionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    challenge_id: int | None
    user_id: int
    language: str
    completed_at: datetime
    audio_url: str | None


# --- User ---


class UserResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    email: str | None
    daily_goal: int
    streak: int
    selected_language: str
    joined_at: datetime


class UserUpdateRequest(BaseModel):
    email: str | None = None
    daily_goal: int | None = Field(default=None, ge=1)
    selected_language: str | None = None


class DashboardResponse(BaseModel):
    user: UserResponse
    card_stats: CardStatsResponse
    weekly_stats: WeeklyStatsResponse
    study_streak: StreakResponse
    speaking_streak: StreakResponse
    daily_goal_progress: float
