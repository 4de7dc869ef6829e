"""Review session orchestrator.

Coordinates the scheduler, due-set selection and the session tracker into
one session flow: present a due card, rate it, persist the new schedule,
count the rating, and re-query the due set for the next card.

Nothing is cached between calls; the study session row is the only state,
so a session can be resumed from its id by any worker.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings, utcnow
from backend.errors import InvalidStateError
from backend.models.card import Card
from backend.models.study_session import StudySession
from backend.services.cards import CardService
from backend.services.sessions import StudySessionService
from backend.services.users import UserService
from backend.srs.queue import build_queue
from backend.srs.scheduler import Rating, ReviewResult

logger = logging.getLogger(__name__)


@dataclass
class RatingOutcome:
    """Everything a caller needs after rating one card."""

    card: Card
    review: ReviewResult
    session: StudySession
    next_card: Card | None

    @property
    def session_complete(self) -> bool:
        return self.next_card is None


class ReviewSession:
    """An active study session over one language's due cards."""

    def __init__(
        self,
        cards: CardService,
        sessions: StudySessionService,
        session: StudySession,
        max_cards: int | None = None,
    ) -> None:
        self.cards = cards
        self.sessions = sessions
        self.session = session
        self.max_cards = settings.max_cards_per_session if max_cards is None else max_cards

    @classmethod
    def from_db(cls, db: AsyncSession, session: StudySession, max_cards: int | None = None) -> "ReviewSession":
        return cls(CardService.from_db(db), StudySessionService.from_db(db), session, max_cards)

    @property
    def language(self) -> str:
        return self.session.language

    @property
    def slots_left(self) -> int:
        return max(0, self.max_cards - self.session.cards_studied)

    async def queue(self, now: datetime | None = None) -> list[Card]:
        """Due cards still to be presented in this session."""
        if self.session.end_time is not None or self.slots_left == 0:
            return []
        due = await self.cards.due(self.language, now)
        return build_queue(due, self.language, now, limit=self.slots_left)

    async def next_card(self, now: datetime | None = None) -> Card | None:
        """Return the card to present next, or None when the session is done."""
        queue = await self.queue(now)
        return queue[0] if queue else None

    async def rate(
        self,
        card_id: int,
        rating: Rating | str | int,
        now: datetime | None = None,
    ) -> RatingOutcome:
        """Rate a card, persist its schedule and count it against the session.

        Only a card the session would present now may be rated: one still
        due, of the session's language, within the session's card limit.

        Raises:
            InvalidRatingError: If the rating is not a valid grade.
            InvalidStateError: If the session has ended, the card belongs
                to another language, or the card is not in the session's
                queue (not due, already rated, or over the limit).
            NotFoundError: If the card does not exist.
            ConcurrentUpdateError: If the card was reviewed concurrently.
        """
        rating = Rating.parse(rating)
        now = now or utcnow()
        if self.session.end_time is not None:
            raise InvalidStateError(f"Session {self.session.id} has already ended")

        card = await self.cards.get(card_id)
        if card.language != self.language:
            raise InvalidStateError(
                f"Card {card_id} is a {card.language} card, session {self.session.id} studies {self.language}"
            )
        if card_id not in {c.id for c in await self.queue(now)}:
            raise InvalidStateError(f"Card {card_id} is not queued in session {self.session.id}")

        card, result = await self.cards.review(card_id, rating, now)
        self.session = await self.sessions.record_rating(self.session.id, rating)
        next_card = await self.next_card(now)

        return RatingOutcome(card=card, review=result, session=self.session, next_card=next_card)

    async def finish(
        self,
        final_stats: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> StudySession:
        """End the session with its running stats (or caller overrides)."""
        self.session = await self.sessions.end(self.session.id, final_stats, now)
        return self.session


async def start_review(
    db: AsyncSession,
    user_id: int,
    language: str | None = None,
    now: datetime | None = None,
    max_cards: int | None = None,
) -> tuple[ReviewSession, list[Card]]:
    """Start a study session and return it with its initial queue.

    An empty queue is the "nothing to review" case: the session is closed
    straight away (with the empty-session accuracy) rather than left open.

    Args:
        db: Database session.
        user_id: The learner starting the session.
        language: Track to study (defaults to the configured language).
        now: Current time (defaults to utcnow).
        max_cards: Session size limit (defaults to the configured limit).

    Returns:
        Tuple of (review_session, queue).
    """
    now = now or utcnow()
    language = language or settings.default_language
    sessions = StudySessionService.from_db(db)
    session = await sessions.start(user_id, language, now)
    review = ReviewSession(CardService.from_db(db), sessions, session, max_cards)

    queue = await review.queue(now)
    if not queue:
        await review.finish(now=now)
        logger.info("No %s cards due for user %d; session %d closed", language, user_id, session.id)
    else:
        logger.info(
            "Started review session %d for user %d: %d cards queued", session.id, user_id, len(queue)
        )
    return review, queue


async def resume_review(db: AsyncSession, session_id: int, max_cards: int | None = None) -> ReviewSession:
    """Rebuild a ReviewSession from its stored study session."""
    session = await StudySessionService.from_db(db).get(session_id)
    return ReviewSession.from_db(db, session, max_cards)


async def finish_review(
    db: AsyncSession,
    review: ReviewSession,
    final_stats: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> StudySession:
    """End a review and refresh the learner's stored study streak."""
    session = await review.finish(final_stats, now)
    await UserService.from_db(db).refresh_streak(session.user_id, review.sessions, now)
    return session
