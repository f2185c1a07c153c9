"""
Result Propagator

Records a match winner and moves it into the next round:
- downstream match = position // 2 in round level + 1
- the winner takes the first empty slot there, home then away
- recording the same winner again is a no-op success
- after every result, round and tournament completion are re-derived from
  the stored match states

All validation happens before the first write. The match update, the
downstream fill and any lifecycle transition commit together or not at all.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from clubcomp.exceptions import InvalidTransition
from clubcomp.models.match import Match
from clubcomp.models.tournament import TournamentStatus
from clubcomp.services.bracket_builder import AWAY, HOME, downstream_position
from clubcomp.services.lifecycle_service import (
    Placement,
    SettlementGateway,
    close_round,
    final_placements,
    is_round_complete,
    is_round_locked,
)
from clubcomp.services.locks import tournament_lock
from clubcomp.services.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class MatchResultOutcome:
    match_id: int
    winner_entrant_id: int
    already_recorded: bool = False
    downstream_match_id: Optional[int] = None
    round_completed: bool = False
    tournament_completed: bool = False
    next_round_start_time: Optional[datetime] = None
    placements: Optional[List[Placement]] = None


def downstream_side(downstream: Match, winner_entrant_id: int) -> Optional[int]:
    """
    First empty slot of the downstream match, home then away.

    Returns None when the winner is already seated there.

    Raises:
        InvalidTransition: both slots are held by other entrants
    """
    if winner_entrant_id in downstream.entrant_ids():
        return None
    if downstream.home_entrant_id is None:
        return HOME
    if downstream.away_entrant_id is None:
        return AWAY
    raise InvalidTransition(
        f"Downstream match {downstream.id} is already full "
        f"({downstream.home_entrant_id} vs {downstream.away_entrant_id})"
    )


def record_match_result(
    store: EntityStore,
    match_id: int,
    winner_entrant_id: int,
    score: Optional[str] = None,
    now: Optional[datetime] = None,
    settlement: Optional[SettlementGateway] = None,
) -> MatchResultOutcome:
    """
    Complete a match with `winner_entrant_id` and propagate the winner.

    Raises:
        EntityNotFound: unknown match
        InvalidTransition: bye match, round locked, winner not in the match,
            a different winner already recorded, or the downstream slot is
            taken by someone else
        ConcurrentModification: a guarded write lost a race; nothing applied
    """
    now = now or datetime.utcnow()
    tournament_id = store.get_match(match_id).tournament_id

    with tournament_lock(tournament_id):
        match = store.get_match(match_id)

        if match.completed:
            if match.winner_entrant_id == winner_entrant_id:
                return MatchResultOutcome(match_id=match_id, winner_entrant_id=winner_entrant_id, already_recorded=True)
            raise InvalidTransition(
                f"Match {match_id} already completed with winner {match.winner_entrant_id}"
            )
        if match.is_bye:
            raise InvalidTransition(f"Match {match_id} is a bye and takes no result")
        if match.home_entrant_id is None or match.away_entrant_id is None:
            raise InvalidTransition(f"Match {match_id} is still waiting for an entrant")
        if winner_entrant_id not in match.entrant_ids():
            raise InvalidTransition(
                f"Entrant {winner_entrant_id} is not playing in match {match_id}"
            )

        tournament = store.get_tournament(tournament_id)
        if is_round_locked(tournament, match.round_level):
            raise InvalidTransition(
                f"Round {match.round_level} of tournament {tournament_id} is not open "
                f"(status={tournament.status}, current round={tournament.current_round_level})"
            )

        rounds = store.get_bracket(tournament_id)
        total_levels = len(rounds)
        downstream = None
        side = None
        if match.round_level < total_levels:
            downstream = store.get_match_at(tournament_id, match.round_level + 1, downstream_position(match.position))
            if downstream is None:
                raise InvalidTransition(f"Match {match_id} has no downstream match")
            side = downstream_side(downstream, winner_entrant_id)

        level = match.round_level
        downstream_id = downstream.id if downstream is not None else None
        outcome = MatchResultOutcome(
            match_id=match_id,
            winner_entrant_id=winner_entrant_id,
            downstream_match_id=downstream_id,
        )

        with store.transaction():
            store.update_match(match_id, completed=True, winner=winner_entrant_id, score=score, completed_at=now)
            if side is not None:
                store.fill_slot(downstream_id, side, winner_entrant_id)

            if is_round_complete(store.get_round_matches(tournament_id, level)):
                outcome.round_completed = True
                outcome.next_round_start_time = close_round(
                    store, store.get_tournament(tournament_id), level, total_levels, now
                )

        if outcome.round_completed and level == total_levels:
            tournament = store.get_tournament(tournament_id)
            outcome.tournament_completed = tournament.status == TournamentStatus.completed

    logger.info(
        "Match %d won by entrant %d%s",
        match_id,
        winner_entrant_id,
        f" -> match {downstream_id}" if downstream_id is not None else " (final)",
    )

    if outcome.tournament_completed:
        outcome.placements = final_placements(store.get_bracket(tournament_id))
        if settlement is not None:
            settlement.award_placements(tournament_id, outcome.placements)

    return outcome
