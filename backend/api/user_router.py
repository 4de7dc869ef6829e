"""API routes for the learner profile."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.errors import http_error
from backend.api.schemas import UserResponse, UserUpdateRequest
from backend.database import get_session
from backend.errors import LangBridgeError
from backend.services.users import UserService

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("", response_model=UserResponse)
async def get_user(db: AsyncSession = Depends(get_session)) -> UserResponse:
    return UserResponse.model_validate(await UserService.from_db(db).current())


@router.patch("", response_model=UserResponse)
async def update_user(
    request: UserUpdateRequest,
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update daily goal, selected language or email."""
    users = UserService.from_db(db)
    user = await users.current()
    try:
        user = await users.update(user.id, **request.model_dump(exclude_none=True))
    except (LangBridgeError, ValueError) as exc:
        raise http_error(exc) from exc
    return UserResponse.model_validate(user)
