from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin


class SpeakingChallenge(Base, TimestampMixin):
    __tablename__ = "speaking_challenges"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    language: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(
        String(20), nullable=False, default="beginner"
    )  # beginner, intermediate, advanced
    audio_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)  # reference recording

    completions: Mapped[list["ChallengeCompletion"]] = relationship(back_populates="challenge")


class ChallengeCompletion(Base):
    __tablename__ = "challenge_completions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    challenge_id: Mapped[int | None] = mapped_column(
        ForeignKey("speaking_challenges.id", ondelete="SET NULL"), nullable=True
    )  # kept after the challenge is deleted so streaks survive
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    language: Mapped[str] = mapped_column(String(50), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    audio_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)  # learner's recording

    challenge: Mapped["SpeakingChallenge | None"] = relationship(back_populates="completions")
