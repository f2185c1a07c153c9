"""
League season setup: approved registrations -> groups -> fixtures.

Runs the group partitioner and the round-robin generator and persists the
result in one transaction. A re-run wipes the previous groups and fixtures
first, so setup can be repeated until the season goes active.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from clubcomp.exceptions import InsufficientTeams, InvalidTransition
from clubcomp.models.season import SeasonStatus
from clubcomp.services.group_partitioner import GroupPlan, partition_into_groups
from clubcomp.services.round_robin import FixturePlan, generate_schedule
from clubcomp.services.store import EntityStore

logger = logging.getLogger(__name__)

_SETUP_ALLOWED = {
    SeasonStatus.draft,
    SeasonStatus.registration_open,
    SeasonStatus.registration_closed,
}


@dataclass
class SeasonSetupOutcome:
    season_id: int
    groups: List[GroupPlan] = field(default_factory=list)
    fixtures: List[FixturePlan] = field(default_factory=list)
    filler_count: int = 0


def setup_season(store: EntityStore, season_id: int, rng: Optional[random.Random] = None) -> SeasonSetupOutcome:
    """
    Partition the approved teams of a season and generate every group's fixtures.

    Real teams keep registration order unless `rng` is given, in which case
    they are shuffled with it first.

    Raises:
        EntityNotFound: unknown season
        InvalidTransition: the season is already active or completed
        InsufficientTeams: not enough teams for a group of the minimum size;
            nothing is persisted
    """
    season = store.get_season(season_id)
    if SeasonStatus(season.status) not in _SETUP_ALLOWED:
        raise InvalidTransition(f"Season {season_id} is {season.status}; groups can no longer change")

    registrations = store.get_approved_registrations(season_id)
    registration_by_team: Dict[int, int] = {r.team_id: r.id for r in registrations}
    real_teams = list(registration_by_team)
    if rng is not None:
        rng.shuffle(real_teams)

    fillers = store.get_filler_teams(exclude=real_teams)
    try:
        plans = partition_into_groups(real_teams, fillers, max_per_group=season.max_teams_per_group)
    except InsufficientTeams as exc:
        logger.warning("Season %d setup refused: %s", season_id, exc)
        raise

    start_date = season.start_date
    outcome = SeasonSetupOutcome(season_id=season_id, groups=plans)
    with store.transaction():
        store.clear_season_groups(season_id)
        groups = store.create_groups(season_id, plans)
        for plan, group in zip(plans, groups):
            for team_id in plan.real_team_ids:
                store.assign_group_number(registration_by_team[team_id], plan.group_number)
            fixtures = generate_schedule(plan.team_ids, start_date, plan.group_number)
            store.persist_fixtures(group.id, fixtures)
            outcome.fixtures.extend(fixtures)
            outcome.filler_count += plan.filler_count

    logger.info(
        "Season %d set up: %d groups, %d filler teams, %d fixtures",
        season_id,
        len(plans),
        outcome.filler_count,
        len(outcome.fixtures),
    )
    return outcome


def activate_season_if_due(store: EntityStore, season_id: int, today: date) -> bool:
    """Move a closed-registration season to active once its start date arrives and fixtures exist."""
    season = store.get_season(season_id)
    if season.status != SeasonStatus.registration_closed or today < season.start_date:
        return False
    if not store.get_season_fixtures(season_id):
        logger.warning("Season %d is due but has no fixtures; not activating", season_id)
        return False

    with store.transaction():
        store.update_season_status(season_id, SeasonStatus.active, expected_status=SeasonStatus.registration_closed)
    logger.info("Season %d activated", season_id)
    return True
