"""Due-set selection for review sessions.

A card is due for a track (language) once its next review time has passed.
Selection never fails: an empty collection simply yields an empty due set,
which callers treat as "nothing to review".
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, TypeVar

from backend.config import settings, utcnow

logger = logging.getLogger(__name__)


class Schedulable(Protocol):
    language: str
    next_review_at: datetime


CardT = TypeVar("CardT", bound=Schedulable)


def is_due(card: Schedulable, now: datetime) -> bool:
    """Return True if the card's next review time is at or before ``now``."""
    return card.next_review_at <= now


def due_cards(cards: Iterable[CardT], track: str, now: datetime | None = None) -> list[CardT]:
    """Return the cards of ``track`` that are due at ``now``.

    Order follows the input; no tie-break is defined.
    """
    now = now or utcnow()
    return [card for card in cards if card.language == track and is_due(card, now)]


def build_queue(
    cards: Iterable[CardT],
    track: str,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[CardT]:
    """Due cards for a session, most overdue first, capped at ``limit``.

    Args:
        cards: Candidate cards (any track).
        track: Language to study.
        now: Current time (defaults to utcnow).
        limit: Maximum number of cards (defaults to the session limit).

    Returns:
        The queue to present, possibly empty.
    """
    limit = settings.max_cards_per_session if limit is None else limit
    due = sorted(due_cards(cards, track, now), key=lambda card: card.next_review_at)
    queue = due[: max(0, limit)]
    logger.debug("Built %s queue: %d due, %d queued", track, len(due), len(queue))
    return queue
