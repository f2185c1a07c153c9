from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.league_group import LeagueGroup


class Fixture(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="season.id", index=True)
    group_id: int = Field(foreign_key="leaguegroup.id", index=True)
    matchday: int  # 1-based
    home_team_id: int = Field(foreign_key="team.id")
    away_team_id: int = Field(foreign_key="team.id")
    match_date: date

    # Relationships
    group: "LeagueGroup" = Relationship(back_populates="fixtures")
