"""
Match results. Recording a winner completes the match and fills the
downstream slot; round and tournament completion follow from match state.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from clubcomp.exceptions import CompetitionError
from clubcomp.routes.deps import get_store, http_error
from clubcomp.services.advancement_service import record_match_result
from clubcomp.services.store import SqlModelStore

router = APIRouter()


class MatchResultRequest(BaseModel):
    winner_entrant_id: int
    score: Optional[str] = None


class MatchResultResponse(BaseModel):
    match_id: int
    winner_entrant_id: int
    already_recorded: bool
    downstream_match_id: Optional[int] = None
    round_completed: bool
    tournament_completed: bool
    next_round_start_time: Optional[datetime] = None


@router.post("/tournaments/{tournament_id}/matches/{match_id}/result", response_model=MatchResultResponse)
def post_match_result(
    tournament_id: int,
    match_id: int,
    body: MatchResultRequest,
    store: SqlModelStore = Depends(get_store),
):
    try:
        match = store.get_match(match_id)
        if match.tournament_id != tournament_id:
            raise HTTPException(status_code=404, detail="Match not found in this tournament")
        outcome = record_match_result(store, match_id, body.winner_entrant_id, score=body.score)
    except CompetitionError as exc:
        raise http_error(exc)

    return MatchResultResponse(
        match_id=outcome.match_id,
        winner_entrant_id=outcome.winner_entrant_id,
        already_recorded=outcome.already_recorded,
        downstream_match_id=outcome.downstream_match_id,
        round_completed=outcome.round_completed,
        tournament_completed=outcome.tournament_completed,
        next_round_start_time=outcome.next_round_start_time,
    )
