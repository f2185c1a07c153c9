"""Season setup: groups, registration tagging, fixtures and re-runs."""
import random
from collections import Counter
from datetime import timedelta

import pytest
from sqlmodel import Session, select

from clubcomp.exceptions import InsufficientTeams, InvalidTransition
from clubcomp.models import GroupMember, LeagueGroup, SeasonRegistration, SeasonStatus
from clubcomp.services.league_service import activate_season_if_due, setup_season
from clubcomp.services.store import SqlModelStore
from tests.factories import SEASON_START, make_season


def test_nine_teams_two_groups_with_backfill(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=9, filler_count=10)

    outcome = setup_season(store, season.id)

    assert [len(g.members) for g in outcome.groups] == [8, 5]
    assert outcome.filler_count == 4
    assert len(outcome.fixtures) == 8 * 7 + 5 * 4

    groups = session.exec(
        select(LeagueGroup).where(LeagueGroup.season_id == season.id).order_by(LeagueGroup.group_number)
    ).all()
    assert sorted(g.group_number for g in groups) == [1, 2]
    members = session.exec(select(GroupMember)).all()
    assert Counter(m.is_filler for m in members) == {False: 9, True: 4}

    registrations = session.exec(
        select(SeasonRegistration).where(SeasonRegistration.season_id == season.id).order_by(SeasonRegistration.id)
    ).all()
    assert [r.group_number for r in registrations] == [1] * 8 + [2]

    fixtures = store.get_season_fixtures(season.id)
    assert len(fixtures) == 76
    assert fixtures[0].match_date == SEASON_START
    first_group_fixtures = [f for f in fixtures if f.group_id == groups[0].id]
    assert max(f.matchday for f in first_group_fixtures) == 14


def test_rerun_replaces_groups_and_fixtures(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=6, filler_count=0)
    setup_season(store, season.id)

    outcome = setup_season(store, season.id, rng=random.Random(1))

    assert len(outcome.groups) == 1
    assert len(session.exec(select(LeagueGroup)).all()) == 1
    assert len(session.exec(select(GroupMember)).all()) == 6
    assert len(store.get_season_fixtures(season.id)) == 30


def test_insufficient_teams_persists_nothing(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=2, filler_count=1)

    with pytest.raises(InsufficientTeams):
        setup_season(store, season.id)

    assert session.exec(select(LeagueGroup)).all() == []
    assert store.get_season_fixtures(season.id) == []


def test_active_season_cannot_be_regrouped(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=6, filler_count=0, status=SeasonStatus.active.value)

    with pytest.raises(InvalidTransition):
        setup_season(store, season.id)


def test_season_max_group_size_respected(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=12, filler_count=0, max_teams_per_group=6)

    outcome = setup_season(store, season.id)

    assert [len(g.members) for g in outcome.groups] == [6, 6]


def test_activation_waits_for_start_date_and_fixtures(session: Session, store: SqlModelStore):
    season = make_season(session, real_count=5, filler_count=0)

    assert activate_season_if_due(store, season.id, SEASON_START) is False

    setup_season(store, season.id)
    assert activate_season_if_due(store, season.id, SEASON_START - timedelta(days=1)) is False
    assert activate_season_if_due(store, season.id, SEASON_START) is True
    assert store.get_season(season.id).status == SeasonStatus.active
