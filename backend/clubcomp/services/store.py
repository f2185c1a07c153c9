"""
Entity Store Gateway

The engine reads and writes entities only through `EntityStore`. Every
engine operation receives a store instance; there is no module-level
singleton.

`SqlModelStore` is the SQLModel-backed adapter. Every state-changing write is
a conditional UPDATE guarded by the expected prior state; when no row
matches, `ConcurrentModification` is raised and the caller's transaction is
rolled back.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Collection, Iterator, List, Optional, Sequence

from sqlalchemy import update
from sqlmodel import Session, select

from clubcomp.exceptions import ConcurrentModification, EntityNotFound
from clubcomp.models.entrant import Entrant
from clubcomp.models.fixture import Fixture
from clubcomp.models.league_group import GroupMember, LeagueGroup
from clubcomp.models.match import Match, SlotState
from clubcomp.models.registration import RegistrationStatus, SeasonRegistration
from clubcomp.models.round import Round
from clubcomp.models.season import Season, SeasonStatus
from clubcomp.models.team import Team
from clubcomp.models.tournament import Tournament, TournamentStatus
from clubcomp.services.bracket_builder import HOME, RoundPlan
from clubcomp.services.group_partitioner import GroupPlan
from clubcomp.services.round_robin import FixturePlan


class EntityStore(ABC):
    """Key/filter based access to the competition entities."""

    @abstractmethod
    def transaction(self):
        """Context manager: commit on success, roll back on any exception."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard whatever the current unit of work holds."""

    # --- tournaments -------------------------------------------------------

    @abstractmethod
    def get_tournament(self, tournament_id: int) -> Tournament: ...

    @abstractmethod
    def list_tournaments(self, status: TournamentStatus) -> List[Tournament]: ...

    @abstractmethod
    def get_registered_entrants(self, tournament_id: int) -> List[Entrant]: ...

    @abstractmethod
    def add_filler_entrants(self, tournament_id: int, team_ids: Sequence[int]) -> List[Entrant]: ...

    @abstractmethod
    def create_rounds(self, tournament_id: int, rounds: List[RoundPlan]) -> List[Round]: ...

    @abstractmethod
    def update_tournament_status(
        self,
        tournament_id: int,
        status: TournamentStatus,
        next_round_start_time: Optional[datetime] = None,
        *,
        expected_status: TournamentStatus,
        expected_version: int,
        **values,
    ) -> None: ...

    # --- matches -----------------------------------------------------------

    @abstractmethod
    def get_match(self, match_id: int) -> Match: ...

    @abstractmethod
    def get_match_at(self, tournament_id: int, level: int, position: int) -> Optional[Match]: ...

    @abstractmethod
    def get_round_matches(self, tournament_id: int, level: int) -> List[Match]: ...

    @abstractmethod
    def get_bracket(self, tournament_id: int) -> List[Round]: ...

    @abstractmethod
    def update_match(
        self, match_id: int, *, completed: bool, winner: int, score: Optional[str], completed_at: datetime
    ) -> None: ...

    @abstractmethod
    def fill_slot(self, match_id: int, side: int, entrant_id: int) -> None: ...

    # --- leagues -----------------------------------------------------------

    @abstractmethod
    def get_season(self, season_id: int) -> Season: ...

    @abstractmethod
    def list_seasons(self, status: SeasonStatus) -> List[Season]: ...

    @abstractmethod
    def update_season_status(self, season_id: int, status: SeasonStatus, *, expected_status: SeasonStatus) -> None: ...

    @abstractmethod
    def get_approved_registrations(self, season_id: int) -> List[SeasonRegistration]: ...

    @abstractmethod
    def get_filler_teams(self, exclude: Collection[int] = ()) -> List[int]: ...

    @abstractmethod
    def clear_season_groups(self, season_id: int) -> None: ...

    @abstractmethod
    def create_groups(self, season_id: int, groups: List[GroupPlan]) -> List[LeagueGroup]: ...

    @abstractmethod
    def assign_group_number(self, registration_id: int, group_number: int) -> None: ...

    @abstractmethod
    def persist_fixtures(self, group_id: int, fixtures: List[FixturePlan]) -> List[Fixture]: ...

    @abstractmethod
    def get_season_fixtures(self, season_id: int) -> List[Fixture]: ...


class SqlModelStore(EntityStore):
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator["SqlModelStore"]:
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def rollback(self) -> None:
        self.session.rollback()

    def _guarded_update(self, stmt, what: str) -> None:
        result = self.session.exec(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            raise ConcurrentModification(f"{what} was modified concurrently")
        # Core UPDATE bypasses the identity map; reload on next access
        self.session.expire_all()

    # --- tournaments -------------------------------------------------------

    def get_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.session.get(Tournament, tournament_id)
        if not tournament:
            raise EntityNotFound(f"Tournament {tournament_id} not found")
        return tournament

    def list_tournaments(self, status: TournamentStatus) -> List[Tournament]:
        return self.session.exec(
            select(Tournament).where(Tournament.status == status.value).order_by(Tournament.id)
        ).all()

    def get_registered_entrants(self, tournament_id: int) -> List[Entrant]:
        entrants = self.session.exec(select(Entrant).where(Entrant.tournament_id == tournament_id)).all()
        return sorted(
            entrants,
            key=lambda e: (
                e.seed if e.seed is not None else float("inf"),
                e.registered_at,
                e.id,
            ),
        )

    def add_filler_entrants(self, tournament_id: int, team_ids: Sequence[int]) -> List[Entrant]:
        teams = {t.id: t for t in self.session.exec(select(Team).where(Team.id.in_(list(team_ids)))).all()}
        added = []
        for team_id in team_ids:
            entrant = Entrant(
                tournament_id=tournament_id,
                team_id=team_id,
                display_name=teams[team_id].name,
                is_filler=True,
            )
            self.session.add(entrant)
            added.append(entrant)
        self.session.flush()
        return added

    def create_rounds(self, tournament_id: int, rounds: List[RoundPlan]) -> List[Round]:
        created = []
        for plan in rounds:
            round_row = Round(tournament_id=tournament_id, level=plan.level, name=plan.name)
            self.session.add(round_row)
            self.session.flush()
            for m in plan.matches:
                self.session.add(
                    Match(
                        tournament_id=tournament_id,
                        round_id=round_row.id,
                        round_level=plan.level,
                        position=m.position,
                        home_entrant_id=m.home.entrant_id,
                        away_entrant_id=m.away.entrant_id,
                        home_slot=m.home.state.value,
                        away_slot=m.away.state.value,
                        is_bye=m.is_bye,
                        completed=m.completed,
                    )
                )
            created.append(round_row)
        self.session.flush()
        return created

    def update_tournament_status(
        self,
        tournament_id: int,
        status: TournamentStatus,
        next_round_start_time: Optional[datetime] = None,
        *,
        expected_status: TournamentStatus,
        expected_version: int,
        **values,
    ) -> None:
        stmt = (
            update(Tournament)
            .where(
                Tournament.id == tournament_id,
                Tournament.status == TournamentStatus(expected_status).value,
                Tournament.lock_version == expected_version,
            )
            .values(
                status=TournamentStatus(status).value,
                next_round_start_time=next_round_start_time,
                lock_version=expected_version + 1,
                updated_at=datetime.utcnow(),
                **values,
            )
        )
        self._guarded_update(stmt, f"Tournament {tournament_id}")

    # --- matches -----------------------------------------------------------

    def get_match(self, match_id: int) -> Match:
        match = self.session.get(Match, match_id)
        if not match:
            raise EntityNotFound(f"Match {match_id} not found")
        return match

    def get_match_at(self, tournament_id: int, level: int, position: int) -> Optional[Match]:
        return self.session.exec(
            select(Match).where(
                Match.tournament_id == tournament_id,
                Match.round_level == level,
                Match.position == position,
            )
        ).first()

    def get_round_matches(self, tournament_id: int, level: int) -> List[Match]:
        return self.session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id, Match.round_level == level)
            .order_by(Match.position)
        ).all()

    def get_bracket(self, tournament_id: int) -> List[Round]:
        return self.session.exec(
            select(Round).where(Round.tournament_id == tournament_id).order_by(Round.level)
        ).all()

    def update_match(
        self, match_id: int, *, completed: bool, winner: int, score: Optional[str], completed_at: datetime
    ) -> None:
        stmt = (
            update(Match)
            .where(Match.id == match_id, Match.completed == False)  # noqa: E712
            .values(completed=completed, winner_entrant_id=winner, score=score, completed_at=completed_at)
        )
        self._guarded_update(stmt, f"Match {match_id}")

    def fill_slot(self, match_id: int, side: int, entrant_id: int) -> None:
        if side == HOME:
            column, values = Match.home_entrant_id, {"home_entrant_id": entrant_id, "home_slot": SlotState.occupied.value}
        else:
            column, values = Match.away_entrant_id, {"away_entrant_id": entrant_id, "away_slot": SlotState.occupied.value}
        stmt = update(Match).where(Match.id == match_id, column.is_(None)).values(**values)
        self._guarded_update(stmt, f"Match {match_id} slot")

    # --- leagues -----------------------------------------------------------

    def get_season(self, season_id: int) -> Season:
        season = self.session.get(Season, season_id)
        if not season:
            raise EntityNotFound(f"Season {season_id} not found")
        return season

    def list_seasons(self, status: SeasonStatus) -> List[Season]:
        return self.session.exec(select(Season).where(Season.status == status.value).order_by(Season.id)).all()

    def update_season_status(self, season_id: int, status: SeasonStatus, *, expected_status: SeasonStatus) -> None:
        stmt = (
            update(Season)
            .where(Season.id == season_id, Season.status == SeasonStatus(expected_status).value)
            .values(status=SeasonStatus(status).value, updated_at=datetime.utcnow())
        )
        self._guarded_update(stmt, f"Season {season_id}")

    def get_approved_registrations(self, season_id: int) -> List[SeasonRegistration]:
        return self.session.exec(
            select(SeasonRegistration)
            .where(
                SeasonRegistration.season_id == season_id,
                SeasonRegistration.status == RegistrationStatus.approved.value,
            )
            .order_by(SeasonRegistration.id)
        ).all()

    def get_filler_teams(self, exclude: Collection[int] = ()) -> List[int]:
        team_ids = self.session.exec(select(Team.id).where(Team.is_cpu == True).order_by(Team.id)).all()  # noqa: E712
        excluded = set(exclude)
        return [team_id for team_id in team_ids if team_id not in excluded]

    def clear_season_groups(self, season_id: int) -> None:
        groups = self.session.exec(select(LeagueGroup).where(LeagueGroup.season_id == season_id)).all()
        for group in groups:
            for fixture in self.session.exec(select(Fixture).where(Fixture.group_id == group.id)).all():
                self.session.delete(fixture)
            for member in self.session.exec(select(GroupMember).where(GroupMember.group_id == group.id)).all():
                self.session.delete(member)
            self.session.delete(group)

        registrations = self.session.exec(
            select(SeasonRegistration).where(
                SeasonRegistration.season_id == season_id,
                SeasonRegistration.group_number.is_not(None),
            )
        ).all()
        for registration in registrations:
            registration.group_number = None
            self.session.add(registration)
        self.session.flush()

    def create_groups(self, season_id: int, groups: List[GroupPlan]) -> List[LeagueGroup]:
        created = []
        for plan in groups:
            group = LeagueGroup(season_id=season_id, group_number=plan.group_number, name=plan.name)
            self.session.add(group)
            self.session.flush()
            for position, member in enumerate(plan.members):
                self.session.add(
                    GroupMember(
                        group_id=group.id,
                        team_id=member.team_id,
                        position=position,
                        is_filler=member.is_filler,
                    )
                )
            created.append(group)
        self.session.flush()
        return created

    def assign_group_number(self, registration_id: int, group_number: int) -> None:
        registration = self.session.get(SeasonRegistration, registration_id)
        if not registration:
            raise EntityNotFound(f"Registration {registration_id} not found")
        registration.group_number = group_number
        self.session.add(registration)

    def persist_fixtures(self, group_id: int, fixtures: List[FixturePlan]) -> List[Fixture]:
        group = self.session.get(LeagueGroup, group_id)
        if not group:
            raise EntityNotFound(f"Group {group_id} not found")
        rows = [
            Fixture(
                season_id=group.season_id,
                group_id=group_id,
                matchday=f.matchday,
                home_team_id=f.home_team_id,
                away_team_id=f.away_team_id,
                match_date=f.match_date,
            )
            for f in fixtures
        ]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def get_season_fixtures(self, season_id: int) -> List[Fixture]:
        return self.session.exec(
            select(Fixture)
            .join(LeagueGroup, Fixture.group_id == LeagueGroup.id)
            .where(Fixture.season_id == season_id)
            .order_by(LeagueGroup.group_number, Fixture.matchday, Fixture.id)
        ).all()
