"""Card management and review persistence."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings, utcnow
from backend.models.card import Card
from backend.srs.queue import due_cards
from backend.srs.scheduler import CardState, Rating, ReviewResult, Scheduler
from backend.srs.stats import CardStats, card_stats
from backend.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

# Display fields a learner may edit; scheduling fields only change on review.
EDITABLE_FIELDS = frozenset({"language", "category", "front", "back"})


class CardService:
    """CRUD over cards plus the read-schedule-write review cycle."""

    def __init__(self, store: RecordStore[Card], scheduler: Scheduler | None = None) -> None:
        self.store = store
        self.scheduler = scheduler or Scheduler()

    @classmethod
    def from_db(cls, db: AsyncSession) -> "CardService":
        return cls(SqlRecordStore(db, Card))

    async def create(
        self,
        front: str,
        back: str,
        language: str | None = None,
        category: str = "general",
        now: datetime | None = None,
    ) -> Card:
        """Create a card that is due immediately."""
        state = CardState.new(now or utcnow())
        card = Card(
            language=language or settings.default_language,
            category=category,
            front=front,
            back=back,
            difficulty=state.difficulty,
            interval=state.interval,
            ease_factor=state.ease_factor,
            next_review_at=state.next_review_at,
        )
        card = await self.store.insert(card)
        logger.info("Created %s card %d (%s)", card.language, card.id, card.category)
        return card

    async def get(self, card_id: int) -> Card:
        return await self.store.get_by_id(card_id)

    async def list_cards(self, language: str | None = None) -> list[Card]:
        criteria = [Card.language == language] if language else []
        return await self.store.find(*criteria, order_by=Card.id.asc())

    async def update(self, card_id: int, **fields: Any) -> Card:
        """Edit display fields of a card.

        Raises:
            ValueError: If a scheduling or unknown field is given.
            NotFoundError: If the card does not exist.
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit card fields: {', '.join(sorted(unknown))}")
        if not fields:
            return await self.store.get_by_id(card_id)
        return await self.store.replace(card_id, fields)

    async def delete(self, card_id: int) -> None:
        await self.store.remove(card_id)
        logger.info("Deleted card %d", card_id)

    async def review(
        self,
        card_id: int,
        rating: Rating | str | int,
        now: datetime | None = None,
    ) -> tuple[Card, ReviewResult]:
        """Apply a rating to a card and persist the new schedule.

        The write is rejected if the card changed since it was read.

        Raises:
            InvalidRatingError: If the rating is not a valid grade.
            NotFoundError: If the card does not exist.
            ConcurrentUpdateError: If another review landed first.
        """
        rating = Rating.parse(rating)
        card = await self.store.get_by_id(card_id)
        result = self.scheduler.review(card.state(), rating, review_time=now)
        new_state = result.new_state

        card = await self.store.replace(
            card_id,
            {
                "interval": new_state.interval,
                "ease_factor": new_state.ease_factor,
                "difficulty": new_state.difficulty,
                "next_review_at": new_state.next_review_at,
            },
            expected_version=card.version,
        )
        logger.debug(
            "Card %d rated %s: interval=%d ease=%.2f", card_id, rating, new_state.interval, new_state.ease_factor
        )
        return card, result

    async def due(self, language: str, now: datetime | None = None) -> list[Card]:
        """Cards of ``language`` due at ``now``; empty when nothing is due."""
        cards = await self.store.find(Card.language == language)
        return due_cards(cards, language, now)

    async def stats(self, language: str, now: datetime | None = None) -> CardStats:
        cards = await self.store.find(Card.language == language)
        return card_stats(cards, now)
