from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from clubcomp.services.competition_rules import MAX_TEAMS_PER_GROUP

if TYPE_CHECKING:
    from clubcomp.models.league_group import LeagueGroup
    from clubcomp.models.registration import SeasonRegistration


class SeasonStatus(str, Enum):
    draft = "draft"
    registration_open = "registration_open"
    registration_closed = "registration_closed"
    active = "active"
    completed = "completed"


class Season(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    status: SeasonStatus = Field(default=SeasonStatus.draft, sa_column=Column(String, nullable=False))
    start_date: date
    max_teams_per_group: int = Field(default=MAX_TEAMS_PER_GROUP)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    registrations: List["SeasonRegistration"] = Relationship(back_populates="season")
    groups: List["LeagueGroup"] = Relationship(back_populates="season")
