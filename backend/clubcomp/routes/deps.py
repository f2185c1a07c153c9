"""Shared route dependencies and engine-error translation."""

from fastapi import Depends, HTTPException
from sqlmodel import Session

from clubcomp.database import get_session
from clubcomp.exceptions import (
    CompetitionError,
    ConcurrentModification,
    EntityNotFound,
    InsufficientTeams,
    InvalidEntrantCount,
    InvalidTransition,
)
from clubcomp.services.store import SqlModelStore


def get_store(session: Session = Depends(get_session)) -> SqlModelStore:
    return SqlModelStore(session)


def http_error(exc: CompetitionError) -> HTTPException:
    if isinstance(exc, EntityNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidTransition, ConcurrentModification)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, InsufficientTeams):
        return HTTPException(
            status_code=422,
            detail={"message": str(exc), "required": exc.required, "available": exc.available},
        )
    if isinstance(exc, InvalidEntrantCount):
        return HTTPException(
            status_code=422,
            detail={"message": str(exc), "count": exc.count, "minimum": exc.minimum},
        )
    return HTTPException(status_code=400, detail=str(exc))
