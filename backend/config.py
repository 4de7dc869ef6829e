from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Replaces the deprecated ``datetime.utcnow()`` while keeping datetimes
    naive so they stay compatible with SQLite (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "LangBridge"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'langbridge.db'}"
    default_language: str = "spanish"
    default_daily_goal: int = 20
    max_cards_per_session: int = 20
    max_interval_days: int = 36500  # caps review dates about a century out
    learned_interval_days: int = 7  # interval above which a card counts as learned
    stats_window_days: int = 7
    progress_sessions_limit: int = 30  # sessions behind the daily breakdown
    progress_days: int = 14
    streak_mode: Literal["index", "calendar"] = "index"
    recent_sessions_limit: int = 10
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    debug: bool = False

    model_config = {"env_prefix": "LANGBRIDGE_", "env_file": ".env"}


settings = Settings()
