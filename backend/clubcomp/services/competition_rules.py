"""
Competition Rules (Single Source of Truth)

Constants and small pure helpers shared by the bracket builder, the lifecycle
controller, the group partitioner and the round-robin generator. Do NOT
duplicate these numbers elsewhere.
"""

import math

# =============================================================================
# Knockout brackets
# =============================================================================

MIN_BRACKET_ENTRANTS = 2
DEFAULT_ROUND_INTERVAL_MINUTES = 10


def bracket_size(entrant_count: int) -> int:
    """Smallest power of two >= max(entrant_count, 2)."""
    return 2 ** math.ceil(math.log2(max(entrant_count, MIN_BRACKET_ENTRANTS)))


def round_count(size: int) -> int:
    """Number of rounds for a bracket of `size` slots: ceil(log2(size))."""
    return math.ceil(math.log2(size))


def round_name(level: int, total_levels: int) -> str:
    """Display name for a round. The last three rounds get their usual names."""
    remaining = total_levels - level
    if remaining == 0:
        return "Final"
    if remaining == 1:
        return "Semifinal"
    if remaining == 2:
        return "Quarterfinal"
    return f"Round {level}"


def total_match_count(entrant_count: int) -> int:
    """Matches actually played in a single-elimination bracket: n - 1."""
    return max(entrant_count - 1, 0)


# =============================================================================
# League groups
# =============================================================================

MIN_GROUP_SIZE = 5
MAX_TEAMS_PER_GROUP = 8


# =============================================================================
# Round robin
# =============================================================================

MATCHDAY_INTERVAL_DAYS = 7


def rr_fixture_count(member_count: int) -> int:
    """Double round robin: every ordered pair once, n * (n - 1)."""
    return member_count * (member_count - 1)


def rr_matchday_count(member_count: int) -> int:
    """
    Matchdays for a double round robin.
    Even n: 2 * (n - 1). Odd n: 2 * n (one bye per team per leg).
    """
    if member_count < 2:
        return 0
    padded = member_count + 1 if member_count % 2 == 1 else member_count
    return 2 * (padded - 1)
