"""Typed failures raised by the competition engine.

Services raise these; routes translate them into HTTP responses. None of them
is raised for expected edge cases such as byes or odd group sizes.
"""


class CompetitionError(Exception):
    """Base class for all engine failures."""


class EntityNotFound(CompetitionError, LookupError):
    """A referenced tournament, match or season does not exist."""


class InvalidEntrantCount(CompetitionError, ValueError):
    """Fewer than two entrants at bracket-build time."""

    def __init__(self, count: int, minimum: int = 2):
        self.count = count
        self.minimum = minimum
        super().__init__(f"A bracket needs at least {minimum} entrants, got {count}")


class InvalidTransition(CompetitionError):
    """Malformed or conflicting state change (match result, season setup)."""


class InsufficientTeams(CompetitionError):
    """Group partitioning cannot satisfy the minimum group size."""

    def __init__(self, message: str, required: int = 0, available: int = 0):
        self.required = required
        self.available = available
        super().__init__(message)


class ConcurrentModification(CompetitionError):
    """A guarded store write found a different prior state; re-read and retry."""
