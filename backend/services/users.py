"""Learner profile: daily goal, selected language and study streak."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings
from backend.models.user import User
from backend.services.sessions import StudySessionService
from backend.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"email", "daily_goal", "selected_language"})


class UserService:
    def __init__(self, store: RecordStore[User]) -> None:
        self.store = store

    @classmethod
    def from_db(cls, db: AsyncSession) -> "UserService":
        return cls(SqlRecordStore(db, User))

    async def current(self) -> User:
        """Return the app's single learner, creating it on first use."""
        users = await self.store.find(order_by=User.id.asc(), limit=1)
        if users:
            return users[0]
        user = await self.store.insert(
            User(
                daily_goal=settings.default_daily_goal,
                selected_language=settings.default_language,
            )
        )
        logger.info("Created default user %d", user.id)
        return user

    async def get(self, user_id: int) -> User:
        return await self.store.get_by_id(user_id)

    async def update(self, user_id: int, **fields: Any) -> User:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit user fields: {', '.join(sorted(unknown))}")
        if "daily_goal" in fields and fields["daily_goal"] < 1:
            raise ValueError("Daily goal must be at least 1 card")
        if not fields:
            return await self.store.get_by_id(user_id)
        return await self.store.replace(user_id, fields)

    async def set_daily_goal(self, user_id: int, goal: int) -> User:
        return await self.update(user_id, daily_goal=goal)

    async def set_language(self, user_id: int, language: str) -> User:
        return await self.update(user_id, selected_language=language)

    async def refresh_streak(
        self,
        user_id: int,
        sessions: StudySessionService,
        now: datetime | None = None,
    ) -> User:
        """Recompute the stored study streak from completed sessions."""
        await self.store.get_by_id(user_id)
        info = await sessions.streak(user_id=user_id, now=now)
        return await self.store.replace(user_id, {"streak": info.current_streak})
