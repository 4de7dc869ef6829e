"""Speaking challenges, daily selection and the speaking streak."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings, utcnow
from backend.errors import NotFoundError
from backend.models.speaking_challenge import ChallengeCompletion, SpeakingChallenge
from backend.srs.challenges import ChallengePicker, RandomPicker
from backend.srs.streak import StreakInfo, StreakMode, calculate_streak
from backend.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")
EDITABLE_FIELDS = frozenset({"language", "prompt", "difficulty", "audio_url"})


@dataclass
class DailyChallenge:
    """Today's challenge for a language and whether it is already done."""

    challenge: SpeakingChallenge
    is_completed: bool
    completion: ChallengeCompletion | None = None


def _check_difficulty(level: str) -> None:
    if level not in DIFFICULTY_LEVELS:
        raise ValueError(f"Unknown difficulty {level!r}; expected one of {', '.join(DIFFICULTY_LEVELS)}")


class SpeakingChallengeService:
    def __init__(
        self,
        challenges: RecordStore[SpeakingChallenge],
        completions: RecordStore[ChallengeCompletion],
        picker: ChallengePicker | None = None,
    ) -> None:
        self.challenges = challenges
        self.completions = completions
        self.picker = picker or RandomPicker()

    @classmethod
    def from_db(cls, db: AsyncSession, picker: ChallengePicker | None = None) -> "SpeakingChallengeService":
        return cls(
            SqlRecordStore(db, SpeakingChallenge),
            SqlRecordStore(db, ChallengeCompletion),
            picker,
        )

    async def create(
        self,
        prompt: str,
        language: str | None = None,
        difficulty: str = "beginner",
        audio_url: str | None = None,
    ) -> SpeakingChallenge:
        _check_difficulty(difficulty)
        challenge = SpeakingChallenge(
            language=language or settings.default_language,
            prompt=prompt,
            difficulty=difficulty,
            audio_url=audio_url,
        )
        return await self.challenges.insert(challenge)

    async def get(self, challenge_id: int) -> SpeakingChallenge:
        return await self.challenges.get_by_id(challenge_id)

    async def list_challenges(self, language: str | None = None) -> list[SpeakingChallenge]:
        criteria = [SpeakingChallenge.language == language] if language else []
        return await self.challenges.find(*criteria, order_by=SpeakingChallenge.id.asc())

    async def update(self, challenge_id: int, **fields: Any) -> SpeakingChallenge:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit challenge fields: {', '.join(sorted(unknown))}")
        if "difficulty" in fields:
            _check_difficulty(fields["difficulty"])
        if not fields:
            return await self.challenges.get_by_id(challenge_id)
        return await self.challenges.replace(challenge_id, fields)

    async def delete(self, challenge_id: int) -> None:
        await self.challenges.remove(challenge_id)

    async def daily(
        self,
        language: str,
        user_id: int | None = None,
        now: datetime | None = None,
    ) -> DailyChallenge:
        """Return today's challenge for ``language``.

        A challenge already completed today wins; otherwise the picker
        chooses among the language's challenges.

        Raises:
            NotFoundError: If the language has no challenges.
        """
        now = now or utcnow()
        day_start = datetime.combine(now.date(), datetime.min.time())
        criteria = [
            ChallengeCompletion.language == language,
            ChallengeCompletion.completed_at >= day_start,
            ChallengeCompletion.completed_at < day_start + timedelta(days=1),
        ]
        if user_id is not None:
            criteria.append(ChallengeCompletion.user_id == user_id)
        done_today = await self.completions.find(
            *criteria, order_by=ChallengeCompletion.completed_at.desc(), limit=1
        )
        if done_today and done_today[0].challenge_id is not None:
            completion = done_today[0]
            challenge = await self.challenges.get_by_id(completion.challenge_id)
            return DailyChallenge(challenge=challenge, is_completed=True, completion=completion)

        candidates = await self.list_challenges(language)
        if not candidates:
            raise NotFoundError("SpeakingChallenge", f"for language {language!r}")
        return DailyChallenge(challenge=self.picker.pick(candidates, now.date()), is_completed=False)

    async def complete(
        self,
        challenge_id: int,
        user_id: int,
        audio_url: str | None = None,
        now: datetime | None = None,
    ) -> ChallengeCompletion:
        challenge = await self.challenges.get_by_id(challenge_id)
        completion = ChallengeCompletion(
            challenge_id=challenge.id,
            user_id=user_id,
            language=challenge.language,
            completed_at=now or utcnow(),
            audio_url=audio_url,
        )
        completion = await self.completions.insert(completion)
        logger.info("User %d completed speaking challenge %d", user_id, challenge_id)
        return completion

    async def completed(self, limit: int | None = None, user_id: int | None = None) -> list[ChallengeCompletion]:
        """Completions newest first."""
        limit = settings.recent_sessions_limit if limit is None else limit
        criteria = [ChallengeCompletion.user_id == user_id] if user_id is not None else []
        return await self.completions.find(
            *criteria, order_by=ChallengeCompletion.completed_at.desc(), limit=limit
        )

    async def streak(
        self,
        user_id: int | None = None,
        now: datetime | None = None,
        mode: StreakMode | str | None = None,
    ) -> StreakInfo:
        criteria = [ChallengeCompletion.user_id == user_id] if user_id is not None else []
        completions = await self.completions.find(*criteria)
        return calculate_streak([c.completed_at for c in completions], now, mode)
