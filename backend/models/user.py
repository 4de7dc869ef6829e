from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    daily_goal: Mapped[int] = mapped_column(Integer, nullable=False, default=20)  # cards per day
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # study streak in days
    selected_language: Mapped[str] = mapped_column(String(50), nullable=False, default="spanish")
    joined_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
