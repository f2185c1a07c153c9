from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.round import Round


class SlotState(str, Enum):
    empty = "empty"
    occupied = "occupied"
    advanced_bye = "advanced_bye"  # placed straight into round 2 by the bracket builder


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("round_id", "position", name="uq_round_match_position"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_id: int = Field(foreign_key="round.id")
    round_level: int
    position: int  # 0-based index within the round

    home_entrant_id: Optional[int] = Field(default=None, foreign_key="entrant.id")
    away_entrant_id: Optional[int] = Field(default=None, foreign_key="entrant.id")
    home_slot: SlotState = Field(default=SlotState.empty, sa_column=Column(String, nullable=False))
    away_slot: SlotState = Field(default=SlotState.empty, sa_column=Column(String, nullable=False))

    # First-round slot whose entrant was advanced straight to round 2
    is_bye: bool = Field(default=False)
    completed: bool = Field(default=False)
    winner_entrant_id: Optional[int] = Field(default=None, foreign_key="entrant.id")
    score: Optional[str] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    round: "Round" = Relationship(back_populates="matches")

    def entrant_ids(self) -> list:
        return [e for e in (self.home_entrant_id, self.away_entrant_id) if e is not None]
