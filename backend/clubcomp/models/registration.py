from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubcomp.models.season import Season


class RegistrationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SeasonRegistration(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("season_id", "team_id", name="uq_season_registration_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="season.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    status: RegistrationStatus = Field(default=RegistrationStatus.pending, sa_column=Column(String, nullable=False))
    group_number: Optional[int] = Field(default=None)  # tagged by league group partitioning
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    season: "Season" = Relationship(back_populates="registrations")
