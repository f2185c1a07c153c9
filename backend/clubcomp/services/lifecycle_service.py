"""
Tournament Lifecycle Controller: upcoming -> ongoing -> completed.

- Start: when now >= scheduled_start (or on a manual trigger) the bracket is
  built from the registered entrants and persisted, status becomes ongoing.
- Round gate: when a round closes and more rounds remain,
  next_round_start_time = now + round_interval_minutes. The next round stays
  locked until try_advance_round is called at or after that time.
- Completion: when the final closes, status becomes completed and the
  placements are handed to the settlement collaborator.

Every trigger is a fast check-and-transition with no waiting. Calling start
on a tournament that is already ongoing or completed is a no-op success.
The engine holds no timers; whoever owns the clock calls in.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from clubcomp.exceptions import ConcurrentModification, InvalidEntrantCount
from clubcomp.models.match import Match
from clubcomp.models.round import Round
from clubcomp.models.tournament import Tournament, TournamentStatus
from clubcomp.services.bracket_builder import BracketResult, build_bracket
from clubcomp.services.competition_rules import total_match_count
from clubcomp.services.locks import tournament_lock
from clubcomp.services.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class StartOutcome:
    started: bool
    status: TournamentStatus
    reason: Optional[str] = None
    bracket: Optional[BracketResult] = None
    filler_count: int = 0


@dataclass
class AdvanceOutcome:
    advanced: bool
    current_round_level: int
    next_round_start_time: Optional[datetime] = None
    remaining: timedelta = timedelta(0)


@dataclass
class Placement:
    position: int  # 1 = winner, 2 = runner-up, 3 = semi-final losers
    entrant_id: int


@dataclass
class ProgressReport:
    tournament_id: int
    status: TournamentStatus
    total_matches: int
    completed_matches: int
    progress: float
    incomplete_match_ids: List[int] = field(default_factory=list)


class SettlementGateway(ABC):
    """External collaborator that rewards the top finishers."""

    @abstractmethod
    def award_placements(self, tournament_id: int, placements: List[Placement]) -> None: ...


# ============================================================================
# Pure helpers
# ============================================================================


def compute_remaining(target: Optional[datetime], now: datetime) -> timedelta:
    """Time left until `target`, never negative. No target means no wait."""
    if target is None or now >= target:
        return timedelta(0)
    return target - now


def is_round_complete(matches: Sequence[Match]) -> bool:
    return bool(matches) and all(m.completed for m in matches)


def incomplete_matches(rounds: Sequence[Round]) -> List[Match]:
    """Exhaustive traversal of every match of every round."""
    return [m for r in rounds for m in r.matches if not m.completed]


def is_bracket_complete(rounds: Sequence[Round]) -> bool:
    return bool(rounds) and not incomplete_matches(rounds)


def is_round_locked(tournament: Tournament, level: int) -> bool:
    """A round is open for results only once the tournament has advanced to it."""
    if tournament.status != TournamentStatus.ongoing:
        return True
    return level != tournament.current_round_level


def loser_of(match: Match) -> Optional[int]:
    if not match.completed or match.winner_entrant_id is None:
        return None
    others = [e for e in match.entrant_ids() if e != match.winner_entrant_id]
    return others[0] if others else None


def final_placements(rounds: Sequence[Round]) -> List[Placement]:
    """Winner, runner-up and the semi-final losers of a finished bracket."""
    if not rounds:
        return []
    final = rounds[-1].matches[0]
    if not final.completed or final.winner_entrant_id is None:
        return []

    placements = [Placement(position=1, entrant_id=final.winner_entrant_id)]
    runner_up = loser_of(final)
    if runner_up is not None:
        placements.append(Placement(position=2, entrant_id=runner_up))
    if len(rounds) >= 2:
        for semi in rounds[-2].matches:
            loser = loser_of(semi)
            if loser is not None:
                placements.append(Placement(position=3, entrant_id=loser))
    return placements


# ============================================================================
# Transitions
# ============================================================================


def try_start_tournament(
    store: EntityStore,
    tournament_id: int,
    now: Optional[datetime] = None,
    *,
    manual: bool = False,
    rng: Optional[random.Random] = None,
) -> StartOutcome:
    """
    Start the tournament if it is due (or `manual`), building its bracket.

    Returns StartOutcome(started=False) when the tournament is not due or was
    already started by someone else.

    Raises:
        InvalidEntrantCount: fewer than two entrants; status stays upcoming
    """
    now = now or datetime.utcnow()
    with tournament_lock(tournament_id):
        tournament = store.get_tournament(tournament_id)
        if tournament.status != TournamentStatus.upcoming:
            return StartOutcome(started=False, status=TournamentStatus(tournament.status), reason="already started")
        if not manual and now < tournament.scheduled_start:
            return StartOutcome(started=False, status=TournamentStatus.upcoming, reason="not due")

        expected_version = tournament.lock_version
        try:
            with store.transaction():
                entrants = list(store.get_registered_entrants(tournament_id))

                fillers = []
                if tournament.cpu_backfill and tournament.max_participants:
                    missing = tournament.max_participants - len(entrants)
                    if missing > 0:
                        taken = {e.team_id for e in entrants}
                        filler_ids = store.get_filler_teams(exclude=taken)[:missing]
                        fillers = store.add_filler_entrants(tournament_id, filler_ids)
                        entrants.extend(fillers)

                if tournament.random_seeding:
                    (rng or random.Random()).shuffle(entrants)

                bracket = build_bracket([e.id for e in entrants])

                store.update_tournament_status(
                    tournament_id,
                    TournamentStatus.ongoing,
                    None,
                    expected_status=TournamentStatus.upcoming,
                    expected_version=expected_version,
                    current_round_level=1,
                    started_at=now,
                )
                store.create_rounds(tournament_id, bracket.rounds)
        except InvalidEntrantCount as exc:
            logger.warning("Tournament %d not started: %s", tournament_id, exc)
            raise
        except ConcurrentModification:
            logger.info("Tournament %d was started concurrently; nothing to do", tournament_id)
            return StartOutcome(started=False, status=TournamentStatus.ongoing, reason="started concurrently")

    logger.info(
        "Tournament %d started: %d entrants (%d filler), bracket of %d with %d byes",
        tournament_id,
        bracket.entrant_count,
        len(fillers),
        bracket.bracket_size,
        bracket.byes,
    )
    return StartOutcome(
        started=True,
        status=TournamentStatus.ongoing,
        bracket=bracket,
        filler_count=len(fillers),
    )


def try_advance_round(store: EntityStore, tournament_id: int, now: Optional[datetime] = None) -> AdvanceOutcome:
    """Open the next round once its start time has passed. Idempotent."""
    now = now or datetime.utcnow()
    with tournament_lock(tournament_id):
        tournament = store.get_tournament(tournament_id)
        level = tournament.current_round_level
        pending = tournament.next_round_start_time

        if tournament.status != TournamentStatus.ongoing or pending is None:
            return AdvanceOutcome(advanced=False, current_round_level=level)
        if now < pending:
            return AdvanceOutcome(
                advanced=False,
                current_round_level=level,
                next_round_start_time=pending,
                remaining=compute_remaining(pending, now),
            )

        try:
            with store.transaction():
                store.update_tournament_status(
                    tournament_id,
                    TournamentStatus.ongoing,
                    None,
                    expected_status=TournamentStatus.ongoing,
                    expected_version=tournament.lock_version,
                    current_round_level=level + 1,
                )
        except ConcurrentModification:
            logger.info("Tournament %d round already advanced concurrently", tournament_id)
            return AdvanceOutcome(advanced=False, current_round_level=store.get_tournament(tournament_id).current_round_level)

    logger.info("Tournament %d advanced to round %d", tournament_id, level + 1)
    return AdvanceOutcome(advanced=True, current_round_level=level + 1)


def close_round(
    store: EntityStore, tournament: Tournament, level: int, total_levels: int, now: datetime
) -> Optional[datetime]:
    """
    Called inside the result transaction once every match of `level` is done.

    Returns the next round start time, or None when the tournament completed.
    """
    if level < total_levels:
        next_start = now + timedelta(minutes=tournament.round_interval_minutes)
        store.update_tournament_status(
            tournament.id,
            TournamentStatus.ongoing,
            next_start,
            expected_status=TournamentStatus.ongoing,
            expected_version=tournament.lock_version,
        )
        logger.info("Tournament %d round %d closed; next round at %s", tournament.id, level, next_start)
        return next_start

    rounds = store.get_bracket(tournament.id)
    if not is_bracket_complete(rounds):
        # Final finished while an earlier match is still open; stay ongoing
        logger.warning(
            "Tournament %d final closed with %d open matches",
            tournament.id,
            len(incomplete_matches(rounds)),
        )
        return None
    store.update_tournament_status(
        tournament.id,
        TournamentStatus.completed,
        None,
        expected_status=TournamentStatus.ongoing,
        expected_version=tournament.lock_version,
        completed_at=now,
    )
    logger.info("Tournament %d completed", tournament.id)
    return None


def tournament_progress(store: EntityStore, tournament_id: int) -> ProgressReport:
    """Completed real matches against the n - 1 a knockout always needs."""
    tournament = store.get_tournament(tournament_id)
    rounds = store.get_bracket(tournament_id)
    entrant_count = len(store.get_registered_entrants(tournament_id))
    total = total_match_count(entrant_count)
    completed = sum(1 for r in rounds for m in r.matches if m.completed and not m.is_bye)
    return ProgressReport(
        tournament_id=tournament_id,
        status=TournamentStatus(tournament.status),
        total_matches=total,
        completed_matches=completed,
        progress=(completed / total) * 100 if total > 0 else 0.0,
        incomplete_match_ids=[m.id for m in incomplete_matches(rounds)],
    )
