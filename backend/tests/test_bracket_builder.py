"""Bracket Builder: sizes, byes and placement of every entrant exactly once."""
import pytest

from clubcomp.exceptions import InvalidEntrantCount
from clubcomp.models.match import SlotState
from clubcomp.services.bracket_builder import build_bracket, downstream_position, feeding_side
from clubcomp.services.competition_rules import bracket_size, round_count, round_name


@pytest.mark.parametrize("n", list(range(2, 34)))
def test_every_entrant_placed_exactly_once(n):
    entrants = [f"e{i}" for i in range(n)]
    result = build_bracket(entrants)

    placed = result.placed_entrant_ids()
    assert len(placed) == n
    assert sorted(placed) == sorted(entrants)
    assert result.bracket_size == bracket_size(n)
    assert result.byes == result.bracket_size - n


@pytest.mark.parametrize("n", [2, 3, 5, 7, 8, 12, 16, 17])
def test_round_counts_halve_down_to_single_final(n):
    result = build_bracket(list(range(n)))

    assert len(result.rounds) == round_count(result.bracket_size)
    counts = [len(r.matches) for r in result.rounds]
    assert counts[0] == result.bracket_size // 2
    for previous, current in zip(counts, counts[1:]):
        assert current == previous // 2
    assert counts[-1] == 1
    assert [r.level for r in result.rounds] == list(range(1, len(result.rounds) + 1))
    assert result.rounds[-1].name == "Final"


@pytest.mark.parametrize("n", [2, 4, 8, 16, 32])
def test_power_of_two_has_no_byes_and_full_first_round(n):
    result = build_bracket(list(range(n)))

    assert result.byes == 0
    assert all(m.home.entrant_id is not None and m.away.entrant_id is not None for m in result.first_round.matches)
    assert not any(m.is_bye for m in result.first_round.matches)
    assert result.bye_entrant_ids == []


def test_seven_entrants_one_bye():
    entrants = ["A", "B", "C", "D", "E", "F", "G"]
    result = build_bracket(entrants)

    assert result.bracket_size == 8
    assert result.byes == 1

    first = result.first_round.matches
    assert len(first) == 4
    full = [m for m in first if m.home.entrant_id is not None and m.away.entrant_id is not None]
    empty = [m for m in first if not m.entrant_ids]
    assert len(full) == 3
    assert len(empty) == 1
    assert [(m.home.entrant_id, m.away.entrant_id) for m in full] == [("A", "B"), ("C", "D"), ("E", "F")]

    # Highest-ordered leftover goes straight to round 2
    assert result.bye_entrant_ids == ["G"]
    target = result.rounds[1].matches[downstream_position(empty[0].position)]
    slot = target.slot(feeding_side(empty[0].position))
    assert slot.state == SlotState.advanced_bye
    assert slot.entrant_id == "G"


def test_bye_matches_are_pre_completed_and_counted():
    result = build_bracket(list(range(5)))

    assert result.bracket_size == 8
    assert result.byes == 3
    bye_matches = [m for m in result.first_round.matches if m.is_bye]
    assert len(bye_matches) == result.byes
    assert all(m.completed and not m.entrant_ids for m in bye_matches)
    assert sorted(result.bye_entrant_ids) == [2, 3, 4]


def test_each_round_two_slot_has_at_most_one_bye_entrant():
    result = build_bracket(list(range(11)))

    for match in result.rounds[1].matches:
        for side in (0, 1):
            feeder = result.first_round.matches[match.position * 2 + side]
            slot = match.slot(side)
            if slot.state == SlotState.advanced_bye:
                assert feeder.is_bye
            else:
                assert slot.entrant_id is None


def test_later_rounds_start_empty():
    result = build_bracket(list(range(6)))

    for round_plan in result.rounds[2:]:
        for match in round_plan.matches:
            assert match.home.state == SlotState.empty
            assert match.away.state == SlotState.empty
            assert not match.completed


def test_deterministic_for_same_input():
    a = build_bracket([4, 9, 1, 7, 3])
    b = build_bracket([4, 9, 1, 7, 3])
    assert a == b


@pytest.mark.parametrize("entrants", [[], ["solo"]])
def test_fewer_than_two_entrants_rejected(entrants):
    with pytest.raises(InvalidEntrantCount) as exc_info:
        build_bracket(entrants)
    assert exc_info.value.count == len(entrants)


def test_duplicate_entrant_rejected():
    with pytest.raises(ValueError):
        build_bracket(["A", "B", "A"])


def test_round_names():
    assert round_name(4, 4) == "Final"
    assert round_name(3, 4) == "Semifinal"
    assert round_name(2, 4) == "Quarterfinal"
    assert round_name(1, 4) == "Round 1"
    assert round_name(1, 1) == "Final"
