"""Vocabulary card model carrying its spaced-repetition state."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin
from backend.srs.scheduler import INITIAL_EASE_FACTOR, INITIAL_INTERVAL, CardState


class Card(Base, TimestampMixin):
    """A flashcard for one language track with its scheduling state."""

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    language: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="general")
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=INITIAL_INTERVAL)  # days
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=INITIAL_EASE_FACTOR)
    next_review_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # bumped on every review

    def state(self) -> CardState:
        """Return the scheduling fields as a detached CardState."""
        return CardState(
            interval=self.interval,
            ease_factor=self.ease_factor,
            difficulty=self.difficulty,
            next_review_at=self.next_review_at,
        )
