from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.tournament import Tournament


class Entrant(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_tournament_entrant_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    display_name: str
    seed: Optional[int] = Field(default=None)  # ordering key, 1 = first
    is_filler: bool = Field(default=False)
    registered_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="entrants")
