from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from clubcomp.exceptions import CompetitionError
from clubcomp.models.match import Match
from clubcomp.routes.deps import get_store, http_error
from clubcomp.services.lifecycle_service import (
    compute_remaining,
    is_round_locked,
    tournament_progress,
    try_advance_round,
    try_start_tournament,
)
from clubcomp.services.store import SqlModelStore

router = APIRouter()


class StartResponse(BaseModel):
    tournament_id: int
    started: bool
    status: str
    reason: Optional[str] = None
    entrant_count: Optional[int] = None
    bracket_size: Optional[int] = None
    byes: Optional[int] = None
    filler_count: int = 0


class AdvanceResponse(BaseModel):
    tournament_id: int
    advanced: bool
    current_round_level: int
    next_round_start_time: Optional[datetime] = None
    seconds_remaining: int = 0


class MatchState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    home_entrant_id: Optional[int] = None
    away_entrant_id: Optional[int] = None
    home_slot: str
    away_slot: str
    is_bye: bool
    completed: bool
    winner_entrant_id: Optional[int] = None
    score: Optional[str] = None


class RoundState(BaseModel):
    level: int
    name: str
    locked: bool
    completed: bool
    matches: List[MatchState]


class BracketResponse(BaseModel):
    tournament_id: int
    status: str
    current_round_level: int
    next_round_start_time: Optional[datetime] = None
    seconds_until_next_round: int = 0
    rounds: List[RoundState]


class ProgressResponse(BaseModel):
    tournament_id: int
    status: str
    total_matches: int
    completed_matches: int
    progress: float
    incomplete_match_ids: List[int]


def _match_state(m: Match) -> MatchState:
    return MatchState.model_validate(m)


@router.post("/tournaments/{tournament_id}/start", response_model=StartResponse)
def start_tournament(tournament_id: int, store: SqlModelStore = Depends(get_store)):
    """Manual "start now". Already started tournaments return started=false."""
    try:
        outcome = try_start_tournament(store, tournament_id, manual=True)
    except CompetitionError as exc:
        raise http_error(exc)

    bracket = outcome.bracket
    return StartResponse(
        tournament_id=tournament_id,
        started=outcome.started,
        status=outcome.status.value,
        reason=outcome.reason,
        entrant_count=bracket.entrant_count if bracket else None,
        bracket_size=bracket.bracket_size if bracket else None,
        byes=bracket.byes if bracket else None,
        filler_count=outcome.filler_count,
    )


@router.post("/tournaments/{tournament_id}/advance-round", response_model=AdvanceResponse)
def advance_round(tournament_id: int, store: SqlModelStore = Depends(get_store)):
    try:
        outcome = try_advance_round(store, tournament_id)
    except CompetitionError as exc:
        raise http_error(exc)

    return AdvanceResponse(
        tournament_id=tournament_id,
        advanced=outcome.advanced,
        current_round_level=outcome.current_round_level,
        next_round_start_time=outcome.next_round_start_time,
        seconds_remaining=int(outcome.remaining.total_seconds()),
    )


@router.get("/tournaments/{tournament_id}/bracket", response_model=BracketResponse)
def get_bracket(tournament_id: int, store: SqlModelStore = Depends(get_store)):
    try:
        tournament = store.get_tournament(tournament_id)
    except CompetitionError as exc:
        raise http_error(exc)

    rounds = [
        RoundState(
            level=r.level,
            name=r.name,
            locked=is_round_locked(tournament, r.level),
            completed=bool(r.matches) and all(m.completed for m in r.matches),
            matches=[_match_state(m) for m in r.matches],
        )
        for r in store.get_bracket(tournament_id)
    ]
    remaining = compute_remaining(tournament.next_round_start_time, datetime.utcnow())
    return BracketResponse(
        tournament_id=tournament_id,
        status=tournament.status,
        current_round_level=tournament.current_round_level,
        next_round_start_time=tournament.next_round_start_time,
        seconds_until_next_round=int(remaining.total_seconds()),
        rounds=rounds,
    )


@router.get("/tournaments/{tournament_id}/progress", response_model=ProgressResponse)
def get_progress(tournament_id: int, store: SqlModelStore = Depends(get_store)):
    try:
        report = tournament_progress(store, tournament_id)
    except CompetitionError as exc:
        raise http_error(exc)

    return ProgressResponse(
        tournament_id=report.tournament_id,
        status=report.status.value,
        total_matches=report.total_matches,
        completed_matches=report.completed_matches,
        progress=round(report.progress, 1),
        incomplete_match_ids=report.incomplete_match_ids,
    )
