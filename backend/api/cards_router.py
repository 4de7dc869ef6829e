"""API routes for card management and reviews."""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.errors import http_error
from backend.api.schemas import (
    CardCreateRequest,
    CardResponse,
    CardStatsResponse,
    CardUpdateRequest,
    RatingRequest,
    ReviewResponse,
)
from backend.database import get_session
from backend.errors import LangBridgeError
from backend.services.cards import CardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cards", tags=["cards"])


def get_card_service(db: AsyncSession = Depends(get_session)) -> CardService:
    return CardService.from_db(db)


@router.post("", response_model=CardResponse, status_code=201)
async def create_card(
    request: CardCreateRequest,
    cards: CardService = Depends(get_card_service),
) -> CardResponse:
    """Create a card that is due for review right away."""
    card = await cards.create(
        front=request.front,
        back=request.back,
        language=request.language,
        category=request.category,
    )
    return CardResponse.model_validate(card)


@router.get("", response_model=list[CardResponse])
async def list_cards(
    language: str | None = None,
    cards: CardService = Depends(get_card_service),
) -> list[CardResponse]:
    return [CardResponse.model_validate(c) for c in await cards.list_cards(language)]


@router.get("/due/{language}", response_model=list[CardResponse])
async def due_cards(
    language: str,
    cards: CardService = Depends(get_card_service),
) -> list[CardResponse]:
    """Cards due now for a language (an empty list when caught up)."""
    return [CardResponse.model_validate(c) for c in await cards.due(language)]


@router.get("/stats/{language}", response_model=CardStatsResponse)
async def card_stats(
    language: str,
    cards: CardService = Depends(get_card_service),
) -> CardStatsResponse:
    return CardStatsResponse.model_validate(await cards.stats(language))


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: int,
    cards: CardService = Depends(get_card_service),
) -> CardResponse:
    try:
        card = await cards.get(card_id)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return CardResponse.model_validate(card)


@router.patch("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: int,
    request: CardUpdateRequest,
    cards: CardService = Depends(get_card_service),
) -> CardResponse:
    """Edit the display fields of a card; its schedule is untouched."""
    try:
        card = await cards.update(card_id, **request.model_dump(exclude_none=True))
    except (LangBridgeError, ValueError) as exc:
        raise http_error(exc) from exc
    return CardResponse.model_validate(card)


@router.delete("/{card_id}", status_code=204)
async def delete_card(
    card_id: int,
    cards: CardService = Depends(get_card_service),
) -> Response:
    try:
        await cards.delete(card_id)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


@router.post("/{card_id}/review", response_model=ReviewResponse)
async def review_card(
    card_id: int,
    request: RatingRequest,
    cards: CardService = Depends(get_card_service),
) -> ReviewResponse:
    """Rate a card outside of a study session."""
    try:
        card, result = await cards.review(card_id, request.rating)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return ReviewResponse(
        card=CardResponse.model_validate(card),
        rating=result.rating.value,
        interval_days=result.interval_days,
    )
