"""Row builders shared by the service and route tests."""
from datetime import date, datetime

from sqlmodel import Session

from clubcomp.models import (
    Entrant,
    RegistrationStatus,
    Season,
    SeasonRegistration,
    SeasonStatus,
    Team,
    Tournament,
)

T0 = datetime(2026, 3, 1, 18, 0, 0)
SEASON_START = date(2026, 4, 4)


def make_teams(session: Session, count: int, cpu: bool = False, prefix: str = "Team") -> list:
    teams = [Team(name=f"{prefix} {i + 1}", is_cpu=cpu) for i in range(count)]
    session.add_all(teams)
    session.commit()
    for team in teams:
        session.refresh(team)
    return teams


def make_tournament(session: Session, entrant_count: int, **kwargs) -> Tournament:
    """Tournament scheduled at T0 with `entrant_count` seeded entrants."""
    kwargs.setdefault("name", "Club Cup")
    kwargs.setdefault("scheduled_start", T0)
    tournament = Tournament(**kwargs)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    for seed, team in enumerate(make_teams(session, entrant_count), start=1):
        session.add(Entrant(tournament_id=tournament.id, team_id=team.id, display_name=team.name, seed=seed))
    session.commit()
    session.refresh(tournament)
    return tournament


def make_season(session: Session, real_count: int, filler_count: int, **kwargs) -> Season:
    """Season with `real_count` approved registrations and a CPU pool of `filler_count`."""
    kwargs.setdefault("name", "Spring League")
    kwargs.setdefault("start_date", SEASON_START)
    kwargs.setdefault("status", SeasonStatus.registration_closed.value)
    season = Season(**kwargs)
    session.add(season)
    session.commit()
    session.refresh(season)

    for team in make_teams(session, real_count, prefix="Club"):
        session.add(
            SeasonRegistration(season_id=season.id, team_id=team.id, status=RegistrationStatus.approved.value)
        )
    make_teams(session, filler_count, cpu=True, prefix="CPU")
    session.commit()
    session.refresh(season)
    return season
