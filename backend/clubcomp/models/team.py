from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    is_cpu: bool = Field(default=False, index=True)  # CPU teams form the filler pool
    user_id: Optional[str] = Field(default=None)  # null for CPU teams
    created_at: datetime = Field(default_factory=datetime.utcnow)
