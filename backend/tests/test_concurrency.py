"""Concurrent triggers on one tournament: single bracket build, no lost downstream fills."""
import threading

import pytest
from sqlmodel import Session, select

from clubcomp.database import build_engine, init_db
from clubcomp.exceptions import ConcurrentModification
from clubcomp.models import Match
from clubcomp.services.advancement_service import record_match_result
from clubcomp.services.bracket_builder import AWAY, HOME
from clubcomp.services.lifecycle_service import try_start_tournament
from clubcomp.services.store import SqlModelStore
from tests.factories import T0, make_tournament


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite so every thread gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"timeout": 30})
    init_db(engine)
    yield engine
    engine.dispose()


def _run_in_threads(count, target):
    """Start `count` threads on `target(index)` together; collect results and errors."""
    barrier = threading.Barrier(count)
    results = [None] * count
    errors = []

    def worker(index):
        barrier.wait()
        try:
            results[index] = target(index)
        except Exception as exc:  # collected and asserted on by the caller
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results, errors


def test_concurrent_starts_build_one_bracket(file_engine):
    with Session(file_engine) as session:
        tournament_id = make_tournament(session, 8).id

    def start(_):
        with Session(file_engine) as session:
            return try_start_tournament(SqlModelStore(session), tournament_id, now=T0, manual=True).started

    results, errors = _run_in_threads(8, start)

    assert errors == []
    assert sorted(results) == [False] * 7 + [True]
    with Session(file_engine) as session:
        matches = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
        assert len(matches) == 7


def test_sibling_results_both_reach_the_downstream_match(file_engine):
    with Session(file_engine) as session:
        tournament_id = make_tournament(session, 8).id
        store = SqlModelStore(session)
        try_start_tournament(store, tournament_id, now=T0)
        first_round = [(m.id, m.home_entrant_id) for m in store.get_round_matches(tournament_id, 1)]

    def record(index):
        match_id, winner = first_round[index]
        with Session(file_engine) as session:
            return record_match_result(SqlModelStore(session), match_id, winner, now=T0)

    results, errors = _run_in_threads(len(first_round), record)

    assert errors == []
    assert sum(1 for r in results if r.round_completed) == 1
    with Session(file_engine) as session:
        second_round = SqlModelStore(session).get_round_matches(tournament_id, 2)
        pairs = [set(m.entrant_ids()) for m in second_round]
    winners = [winner for _, winner in first_round]
    assert pairs == [set(winners[0:2]), set(winners[2:4])]


def test_fill_slot_on_occupied_slot_is_a_concurrent_modification(session: Session, store: SqlModelStore):
    tournament = make_tournament(session, 4)
    try_start_tournament(store, tournament.id, now=T0)
    final = store.get_round_matches(tournament.id, 2)[0]
    final_id = final.id
    first, second = [m.home_entrant_id for m in store.get_round_matches(tournament.id, 1)]

    with store.transaction():
        store.fill_slot(final_id, HOME, first)

    with pytest.raises(ConcurrentModification):
        with store.transaction():
            store.fill_slot(final_id, HOME, second)

    final = store.get_match(final_id)
    assert final.home_entrant_id == first
    assert final.away_entrant_id is None

    with store.transaction():
        store.fill_slot(final_id, AWAY, second)
    assert store.get_match(final_id).entrant_ids() == [first, second]


def test_update_match_on_completed_match_is_a_concurrent_modification(session: Session, store: SqlModelStore):
    tournament = make_tournament(session, 4)
    try_start_tournament(store, tournament.id, now=T0)
    match = store.get_round_matches(tournament.id, 1)[0]
    match_id, home, away = match.id, match.home_entrant_id, match.away_entrant_id
    record_match_result(store, match_id, home, now=T0)

    with pytest.raises(ConcurrentModification):
        with store.transaction():
            store.update_match(match_id, completed=True, winner=away, score=None, completed_at=T0)
    assert store.get_match(match_id).winner_entrant_id == home
