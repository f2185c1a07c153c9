from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from clubcomp.services.competition_rules import DEFAULT_ROUND_INTERVAL_MINUTES

if TYPE_CHECKING:
    from clubcomp.models.entrant import Entrant
    from clubcomp.models.round import Round


class TournamentStatus(str, Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    status: TournamentStatus = Field(default=TournamentStatus.upcoming, sa_column=Column(String, nullable=False))
    scheduled_start: datetime
    round_interval_minutes: int = Field(default=DEFAULT_ROUND_INTERVAL_MINUTES)

    # Set only while ongoing and a round boundary is pending
    next_round_start_time: Optional[datetime] = Field(default=None)
    current_round_level: int = Field(default=0)  # 0 until the bracket exists

    max_participants: Optional[int] = Field(default=None)
    cpu_backfill: bool = Field(default=False)
    random_seeding: bool = Field(default=False)
    automation_enabled: bool = Field(default=True)

    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    # Bumped on every guarded write (optimistic concurrency)
    lock_version: int = Field(default=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    entrants: List["Entrant"] = Relationship(back_populates="tournament")
    rounds: List["Round"] = Relationship(back_populates="tournament")
