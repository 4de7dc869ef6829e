from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin
from backend.srs.tracker import SessionTally


class StudySession(Base, TimestampMixin):
    __tablename__ = "study_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(50), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)  # null while active
    cards_studied: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    accuracy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # percent, 0-100
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # bumped on every counter write

    def tally(self) -> SessionTally:
        return SessionTally(
            user_id=self.user_id,
            start_time=self.start_time,
            end_time=self.end_time,
            cards_studied=self.cards_studied,
            correct_count=self.correct_count,
            accuracy=self.accuracy,
        )
