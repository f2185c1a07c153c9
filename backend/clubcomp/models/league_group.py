from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.fixture import Fixture
    from clubcomp.models.season import Season


class LeagueGroup(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("season_id", "group_number", name="uq_season_group_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="season.id", index=True)
    group_number: int  # 1-based ordinal
    name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    season: "Season" = Relationship(back_populates="groups")
    members: List["GroupMember"] = Relationship(
        back_populates="group", sa_relationship_kwargs={"order_by": "GroupMember.position"}
    )
    fixtures: List["Fixture"] = Relationship(back_populates="group")


class GroupMember(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_id", "team_id", name="uq_group_member_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="leaguegroup.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    position: int  # 0-based order within the group
    is_filler: bool = Field(default=False)

    # Relationships
    group: "LeagueGroup" = Relationship(back_populates="members")
