"""SQLAlchemy ORM models for the LangBridge database."""

from backend.models.base import Base
from backend.models.card import Card
from backend.models.speaking_challenge import ChallengeCompletion, SpeakingChallenge
from backend.models.study_session import StudySession
from backend.models.user import User

__all__ = ["Base", "Card", "ChallengeCompletion", "SpeakingChallenge", "StudySession", "User"]
