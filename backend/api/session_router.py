"""API routes for study sessions."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.errors import http_error
from backend.api.schemas import (
    CardResponse,
    SessionEndRequest,
    SessionRateRequest,
    SessionRateResponse,
    SessionStartRequest,
    SessionStartResponse,
    StudySessionResponse,
)
from backend.database import get_session
from backend.errors import LangBridgeError
from backend.services.review import finish_review, resume_review, start_review
from backend.services.sessions import StudySessionService
from backend.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


@router.post("/start", response_model=SessionStartResponse)
async def session_start(
    request: SessionStartRequest | None = None,
    db: AsyncSession = Depends(get_session),
) -> SessionStartResponse:
    """Start a study session over the learner's due cards.

    When nothing is due the session is returned already closed and
    ``first_card`` is null.
    """
    user = await UserService.from_db(db).current()
    language = (request.language if request else None) or user.selected_language
    review, queue = await start_review(db, user.id, language)

    return SessionStartResponse(
        session=StudySessionResponse.model_validate(review.session),
        due_cards=len(queue),
        first_card=CardResponse.model_validate(queue[0]) if queue else None,
    )


@router.get("/recent", response_model=list[StudySessionResponse])
async def session_recent(
    limit: int | None = None,
    db: AsyncSession = Depends(get_session),
) -> list[StudySessionResponse]:
    sessions = await StudySessionService.from_db(db).recent(limit)
    return [StudySessionResponse.model_validate(s) for s in sessions]


@router.get("/{session_id}", response_model=StudySessionResponse)
async def session_get(
    session_id: int,
    db: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    try:
        session = await StudySessionService.from_db(db).get(session_id)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return StudySessionResponse.model_validate(session)


@router.get("/{session_id}/next", response_model=CardResponse | None)
async def session_next(
    session_id: int,
    db: AsyncSession = Depends(get_session),
) -> CardResponse | None:
    """Get the next due card in the session, or null when there is none."""
    try:
        review = await resume_review(db, session_id)
    except LangBridgeError as exc:
        raise http_error(exc) from exc

    card = await review.next_card()
    return CardResponse.model_validate(card) if card else None


@router.post("/{session_id}/rate", response_model=SessionRateResponse)
async def session_rate(
    session_id: int,
    request: SessionRateRequest,
    db: AsyncSession = Depends(get_session),
) -> SessionRateResponse:
    """Rate the presented card and get the next one."""
    try:
        review = await resume_review(db, session_id)
        outcome = await review.rate(request.card_id, request.rating)
    except LangBridgeError as exc:
        raise http_error(exc) from exc

    return SessionRateResponse(
        card=CardResponse.model_validate(outcome.card),
        interval_days=outcome.review.interval_days,
        next_review_at=outcome.review.new_state.next_review_at,
        session=StudySessionResponse.model_validate(outcome.session),
        next_card=CardResponse.model_validate(outcome.next_card) if outcome.next_card else None,
        session_complete=outcome.session_complete,
    )


@router.post("/{session_id}/end", response_model=StudySessionResponse)
async def session_end(
    session_id: int,
    request: SessionEndRequest | None = None,
    db: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    """End a session, optionally overriding its final stats."""
    final_stats = request.model_dump(exclude_none=True) if request else None
    try:
        review = await resume_review(db, session_id)
        session = await finish_review(db, review, final_stats)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return StudySessionResponse.model_validate(session)
