"""
Bracket Builder: single-elimination layout for any entrant count >= 2.

Input order is the seeding: callers shuffle beforehand if they want a random
draw. The builder itself is deterministic.

Layout for N entrants in a bracket of size B (power of two):
- byes = B - N
- the first N - byes entrants are paired in order into round-1 matches
- the remaining `byes` round-1 matches stay empty; they are marked as bye
  matches and count as completed from the start
- each of the last `byes` entrants is placed straight into the round-2 slot
  fed by one of those empty round-1 matches (SlotState.advanced_bye)
- every later round is created empty, halving down to the single final
"""

from dataclasses import dataclass, field
from typing import Hashable, List, Optional, Sequence

from clubcomp.exceptions import InvalidEntrantCount
from clubcomp.models.match import SlotState
from clubcomp.services.competition_rules import MIN_BRACKET_ENTRANTS, bracket_size, round_count, round_name

HOME = 0
AWAY = 1


@dataclass
class SlotPlan:
    state: SlotState = SlotState.empty
    entrant_id: Optional[Hashable] = None


@dataclass
class MatchPlan:
    position: int
    home: SlotPlan = field(default_factory=SlotPlan)
    away: SlotPlan = field(default_factory=SlotPlan)
    is_bye: bool = False
    completed: bool = False

    def slot(self, side: int) -> SlotPlan:
        return self.home if side == HOME else self.away

    @property
    def entrant_ids(self) -> List[Hashable]:
        return [s.entrant_id for s in (self.home, self.away) if s.entrant_id is not None]


@dataclass
class RoundPlan:
    level: int
    name: str
    matches: List[MatchPlan]


@dataclass
class BracketResult:
    entrant_count: int
    bracket_size: int
    byes: int
    rounds: List[RoundPlan]

    @property
    def first_round(self) -> RoundPlan:
        return self.rounds[0]

    @property
    def bye_entrant_ids(self) -> List[Hashable]:
        """Entrants placed directly into round 2, in placement order."""
        if len(self.rounds) < 2:
            return []
        return [
            slot.entrant_id
            for match in self.rounds[1].matches
            for slot in (match.home, match.away)
            if slot.state == SlotState.advanced_bye
        ]

    def placed_entrant_ids(self) -> List[Hashable]:
        """Round-1 placements followed by round-2 bye placements."""
        placed: List[Hashable] = []
        for match in self.first_round.matches:
            placed.extend(match.entrant_ids)
        placed.extend(self.bye_entrant_ids)
        return placed


def downstream_position(position: int) -> int:
    """Index of the next-round match fed by the match at `position`."""
    return position // 2


def feeding_side(position: int) -> int:
    """Slot of the downstream match that a match at `position` feeds."""
    return position % 2


def build_bracket(entrant_ids: Sequence[Hashable]) -> BracketResult:
    """
    Build the full round/match tree for the ordered entrants.

    Raises:
        InvalidEntrantCount: fewer than two entrants
        ValueError: the same entrant appears twice
    """
    entrants = list(entrant_ids)
    n = len(entrants)
    if n < MIN_BRACKET_ENTRANTS:
        raise InvalidEntrantCount(n, MIN_BRACKET_ENTRANTS)
    if len(set(entrants)) != n:
        raise ValueError("Entrant list contains duplicates")

    size = bracket_size(n)
    byes = size - n
    first_round_count = size // 2
    players_in_first_round = n - byes
    matches_with_both = players_in_first_round // 2
    levels = round_count(size)

    rounds: List[RoundPlan] = []
    match_count = first_round_count
    for level in range(1, levels + 1):
        rounds.append(
            RoundPlan(
                level=level,
                name=round_name(level, levels),
                matches=[MatchPlan(position=i) for i in range(match_count)],
            )
        )
        match_count //= 2

    # Round 1: pair entrants 2i and 2i+1; the rest are empty bye matches
    for match in rounds[0].matches:
        i = match.position
        if i < matches_with_both:
            match.home = SlotPlan(SlotState.occupied, entrants[2 * i])
            match.away = SlotPlan(SlotState.occupied, entrants[2 * i + 1])
        else:
            match.is_bye = True
            match.completed = True

    # Leftover entrants go straight to the round-2 slot fed by an empty match
    bye_entrants = entrants[players_in_first_round:]
    empty_positions = [m.position for m in rounds[0].matches if m.is_bye]
    for entrant, position in zip(bye_entrants, empty_positions):
        target = rounds[1].matches[downstream_position(position)]
        side = feeding_side(position)
        if side == HOME:
            target.home = SlotPlan(SlotState.advanced_bye, entrant)
        else:
            target.away = SlotPlan(SlotState.advanced_bye, entrant)

    return BracketResult(entrant_count=n, bracket_size=size, byes=byes, rounds=rounds)
