"""API routes for daily speaking challenges."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.errors import http_error
from backend.api.schemas import (
    ChallengeCompleteRequest,
    ChallengeCreateRequest,
    ChallengeResponse,
    CompletionResponse,
    DailyChallengeResponse,
    StreakResponse,
)
from backend.database import get_session
from backend.errors import LangBridgeError
from backend.services.challenges import SpeakingChallengeService
from backend.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/speaking", tags=["speaking"])


def get_challenge_service(db: AsyncSession = Depends(get_session)) -> SpeakingChallengeService:
    return SpeakingChallengeService.from_db(db)


@router.post("", response_model=ChallengeResponse, status_code=201)
async def create_challenge(
    request: ChallengeCreateRequest,
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> ChallengeResponse:
    challenge = await challenges.create(
        prompt=request.prompt,
        language=request.language,
        difficulty=request.difficulty,
        audio_url=request.audio_url,
    )
    return ChallengeResponse.model_validate(challenge)


@router.get("", response_model=list[ChallengeResponse])
async def list_challenges(
    language: str | None = None,
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> list[ChallengeResponse]:
    return [ChallengeResponse.model_validate(c) for c in await challenges.list_challenges(language)]


@router.get("/daily/{language}", response_model=DailyChallengeResponse)
async def daily_challenge(
    language: str,
    db: AsyncSession = Depends(get_session),
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> DailyChallengeResponse:
    """Today's challenge: the one already completed, or a fresh pick."""
    user = await UserService.from_db(db).current()
    try:
        daily = await challenges.daily(language, user_id=user.id)
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return DailyChallengeResponse(
        challenge=ChallengeResponse.model_validate(daily.challenge),
        is_completed=daily.is_completed,
        completed_at=daily.completion.completed_at if daily.completion else None,
    )


@router.post("/{challenge_id}/complete", response_model=CompletionResponse, status_code=201)
async def complete_challenge(
    challenge_id: int,
    request: ChallengeCompleteRequest | None = None,
    db: AsyncSession = Depends(get_session),
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> CompletionResponse:
    user = await UserService.from_db(db).current()
    try:
        completion = await challenges.complete(
            challenge_id, user.id, audio_url=request.audio_url if request else None
        )
    except LangBridgeError as exc:
        raise http_error(exc) from exc
    return CompletionResponse.model_validate(completion)


@router.get("/completed", response_model=list[CompletionResponse])
async def completed_challenges(
    limit: int | None = None,
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> list[CompletionResponse]:
    return [CompletionResponse.model_validate(c) for c in await challenges.completed(limit)]


@router.get("/streak", response_model=StreakResponse)
async def speaking_streak(
    challenges: SpeakingChallengeService = Depends(get_challenge_service),
) -> StreakResponse:
    return StreakResponse.model_validate(await challenges.streak())
