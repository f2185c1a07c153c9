"""
Round-Robin Schedule Generator: double round robin per league group.

Circle method: fix the first member, rotate the others one step per round.
Odd groups get a bye placeholder; pairings with it are dropped, so the team
drawn against it sits that matchday out. The first leg flips home/away on
every other round; the second leg replays the first with home/away swapped.

Matchday dates follow one weekly rule for every group, so matchday k of
every group in a season falls on the same calendar date.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Sequence, Tuple

from clubcomp.services.competition_rules import MATCHDAY_INTERVAL_DAYS

_BYE = object()


@dataclass(frozen=True)
class FixturePlan:
    group_number: int
    matchday: int
    home_team_id: int
    away_team_id: int
    match_date: date


def matchday_date(season_start: date, matchday: int) -> date:
    """seasonStart + (matchday - 1) weeks."""
    return season_start + timedelta(days=(matchday - 1) * MATCHDAY_INTERVAL_DAYS)


def single_leg_rounds(members: Sequence[int]) -> List[List[Tuple[int, int]]]:
    """
    One leg of (home, away) pairings, one list per round.
    Even n: n - 1 rounds. Odd n: n rounds, each with one member resting.
    """
    positions = list(members)
    if len(positions) % 2 == 1:
        positions.append(_BYE)
    size = len(positions)
    half = size // 2

    rounds: List[List[Tuple[int, int]]] = []
    for round_index in range(size - 1):
        pairings = []
        for i in range(half):
            a, b = positions[i], positions[size - 1 - i]
            if a is _BYE or b is _BYE:
                continue
            pairings.append((a, b) if round_index % 2 == 0 else (b, a))
        rounds.append(pairings)
        # Rotate: keep the first, move the last to second, shift the others
        positions = [positions[0]] + [positions[-1]] + positions[1:-1]

    return rounds


def generate_schedule(members: Sequence[int], season_start: date, group_number: int = 1) -> List[FixturePlan]:
    """
    Full double round-robin fixture list for one group.

    Matchdays 1..L hold the first leg and L+1..2L the return leg, where L is
    the single-leg round count.

    Raises:
        ValueError: fewer than two members, or a member listed twice
    """
    members = list(members)
    if len(members) < 2:
        raise ValueError(f"A round robin needs at least 2 members, got {len(members)}")
    if len(set(members)) != len(members):
        raise ValueError("Group member list contains duplicates")

    first_leg = single_leg_rounds(members)
    second_leg = [[(away, home) for home, away in pairings] for pairings in first_leg]

    fixtures: List[FixturePlan] = []
    for matchday, pairings in enumerate(first_leg + second_leg, start=1):
        for home, away in pairings:
            fixtures.append(
                FixturePlan(
                    group_number=group_number,
                    matchday=matchday,
                    home_team_id=home,
                    away_team_id=away,
                    match_date=matchday_date(season_start, matchday),
                )
            )
    return fixtures
