from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.match import Match
    from clubcomp.models.tournament import Tournament


class Round(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "level", name="uq_tournament_round_level"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    level: int  # 1 = first round, increasing toward the final
    name: str

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="rounds")
    matches: List["Match"] = Relationship(
        back_populates="round", sa_relationship_kwargs={"order_by": "Match.position"}
    )
