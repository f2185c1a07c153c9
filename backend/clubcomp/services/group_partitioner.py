"""
League Group Partitioner

Splits approved real teams into league groups:
1. Slice the ordered real teams greedily into chunks of
   min(max_per_group, remaining) -> ceil(real_count / max_per_group) groups
2. Any group below MIN_GROUP_SIZE is topped up with filler (CPU) teams taken
   one at a time from the front of the filler pool
3. If the pool runs dry, fail with InsufficientTeams before anything is
   returned (all-or-nothing)

The partitioner preserves input order; shuffling is the caller's choice.
"""

from dataclasses import dataclass, field
from math import ceil
from typing import List, Sequence

from clubcomp.exceptions import InsufficientTeams
from clubcomp.services.competition_rules import MAX_TEAMS_PER_GROUP, MIN_GROUP_SIZE


@dataclass
class GroupMemberPlan:
    team_id: int
    is_filler: bool = False


@dataclass
class GroupPlan:
    group_number: int
    members: List[GroupMemberPlan] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"Group {self.group_number}"

    @property
    def team_ids(self) -> List[int]:
        return [m.team_id for m in self.members]

    @property
    def real_team_ids(self) -> List[int]:
        return [m.team_id for m in self.members if not m.is_filler]

    @property
    def filler_count(self) -> int:
        return sum(1 for m in self.members if m.is_filler)


def compute_groups_count(real_count: int, max_per_group: int) -> int:
    """Greedy slicing yields ceil(real_count / max_per_group) groups."""
    if real_count <= 0:
        return 0
    return ceil(real_count / max_per_group)


def partition_into_groups(
    real_teams: Sequence[int],
    filler_teams: Sequence[int],
    max_per_group: int = MAX_TEAMS_PER_GROUP,
    min_group_size: int = MIN_GROUP_SIZE,
) -> List[GroupPlan]:
    """
    Partition real teams into groups, backfilling short groups with fillers.

    Raises:
        ValueError: max_per_group outside [min_group_size, MAX_TEAMS_PER_GROUP],
            or a team listed twice
        InsufficientTeams: no real teams, fewer than min_group_size teams in
            total, or the filler pool runs out while topping up a group
    """
    if not min_group_size <= max_per_group <= MAX_TEAMS_PER_GROUP:
        raise ValueError(
            f"max_per_group must be between {min_group_size} and {MAX_TEAMS_PER_GROUP}, got {max_per_group}"
        )
    real = list(real_teams)
    if len(set(real)) != len(real):
        raise ValueError("Real team list contains duplicates")
    real_set = set(real)
    pool = [team_id for team_id in dict.fromkeys(filler_teams) if team_id not in real_set]

    if not real:
        raise InsufficientTeams("No approved teams to partition", required=min_group_size, available=0)
    if len(real) + len(pool) < min_group_size:
        raise InsufficientTeams(
            f"Need at least {min_group_size} teams, have {len(real)} real and {len(pool)} filler",
            required=min_group_size,
            available=len(real) + len(pool),
        )

    groups: List[GroupPlan] = []
    for number, start in enumerate(range(0, len(real), max_per_group), start=1):
        chunk = real[start:start + max_per_group]
        groups.append(GroupPlan(group_number=number, members=[GroupMemberPlan(team_id) for team_id in chunk]))

    needed = sum(max(0, min_group_size - len(g.members)) for g in groups)
    if needed > len(pool):
        raise InsufficientTeams(
            f"Groups need {needed} filler teams but only {len(pool)} are available",
            required=needed,
            available=len(pool),
        )

    for group in groups:
        while len(group.members) < min_group_size:
            group.members.append(GroupMemberPlan(pool.pop(0), is_filler=True))

    return groups
