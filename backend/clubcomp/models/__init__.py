from clubcomp.models.entrant import Entrant
from clubcomp.models.fixture import Fixture
from clubcomp.models.league_group import GroupMember, LeagueGroup
from clubcomp.models.match import Match, SlotState
from clubcomp.models.registration import RegistrationStatus, SeasonRegistration
from clubcomp.models.round import Round
from clubcomp.models.season import Season, SeasonStatus
from clubcomp.models.team import Team
from clubcomp.models.tournament import Tournament, TournamentStatus

__all__ = [
    "Tournament",
    "TournamentStatus",
    "Team",
    "Entrant",
    "Round",
    "Match",
    "SlotState",
    "Season",
    "SeasonStatus",
    "SeasonRegistration",
    "RegistrationStatus",
    "LeagueGroup",
    "GroupMember",
    "Fixture",
]
