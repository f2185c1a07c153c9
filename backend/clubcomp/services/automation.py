"""
Automation sweep.

Called periodically by whatever owns the clock (cron, a background task, the
sweep endpoint). Each pass:
- starts every upcoming tournament with automation enabled whose scheduled
  start has passed
- opens the next round of every ongoing tournament whose round gate elapsed
- activates every season whose start date arrived and whose fixtures exist

One failing tournament or season never stops the sweep; its error is
reported instead. Database errors roll the session back before moving on.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from clubcomp.exceptions import CompetitionError
from clubcomp.models.season import SeasonStatus
from clubcomp.models.tournament import TournamentStatus
from clubcomp.services.league_service import activate_season_if_due
from clubcomp.services.lifecycle_service import try_advance_round, try_start_tournament
from clubcomp.services.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class SweepFailure:
    kind: str  # "tournament" or "season"
    entity_id: int
    error: str


@dataclass
class SweepReport:
    started: List[int] = field(default_factory=list)
    advanced: List[int] = field(default_factory=list)
    activated: List[int] = field(default_factory=list)
    failed: List[SweepFailure] = field(default_factory=list)


def _record_failure(
    store: EntityStore, report: SweepReport, kind: str, entity_id: int, action: str, exc: Exception
) -> None:
    if isinstance(exc, SQLAlchemyError):
        store.rollback()
    logger.warning("Sweep could not %s %s %d: %s", action, kind, entity_id, exc)
    report.failed.append(SweepFailure(kind, entity_id, str(exc)))


def run_automation_sweep(store: EntityStore, now: Optional[datetime] = None) -> SweepReport:
    now = now or datetime.utcnow()
    report = SweepReport()

    # Candidates are read up front; a rollback mid-pass must not touch them
    due_starts = [
        t.id
        for t in store.list_tournaments(TournamentStatus.upcoming)
        if t.automation_enabled and now >= t.scheduled_start
    ]
    due_rounds = [
        t.id
        for t in store.list_tournaments(TournamentStatus.ongoing)
        if t.next_round_start_time is not None and now >= t.next_round_start_time
    ]
    closed_seasons = [s.id for s in store.list_seasons(SeasonStatus.registration_closed)]

    for tournament_id in due_starts:
        try:
            if try_start_tournament(store, tournament_id, now).started:
                report.started.append(tournament_id)
        except (CompetitionError, SQLAlchemyError) as exc:
            _record_failure(store, report, "tournament", tournament_id, "start", exc)

    for tournament_id in due_rounds:
        try:
            if try_advance_round(store, tournament_id, now).advanced:
                report.advanced.append(tournament_id)
        except (CompetitionError, SQLAlchemyError) as exc:
            _record_failure(store, report, "tournament", tournament_id, "advance", exc)

    for season_id in closed_seasons:
        try:
            if activate_season_if_due(store, season_id, now.date()):
                report.activated.append(season_id)
        except (CompetitionError, SQLAlchemyError) as exc:
            _record_failure(store, report, "season", season_id, "activate", exc)

    if report.started or report.advanced or report.activated or report.failed:
        logger.info(
            "Sweep at %s: started=%s advanced=%s activated=%s failed=%d",
            now.isoformat(),
            report.started,
            report.advanced,
            report.activated,
            len(report.failed),
        )
    return report
