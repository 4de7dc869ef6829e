"""Translate domain errors into HTTP errors."""

from fastapi import HTTPException

from backend.errors import (
    ConcurrentUpdateError,
    InvalidRatingError,
    InvalidStateError,
    LangBridgeError,
    NotFoundError,
)


def http_error(exc: LangBridgeError | ValueError) -> HTTPException:
    """Map a domain error onto the status code the API reports for it."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidStateError, ConcurrentUpdateError)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidRatingError, ValueError)):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
