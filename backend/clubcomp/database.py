"""
Engine and session wiring.

Settings come from the environment (a local .env is honoured):
- DATABASE_URL  defaults to a SQLite file next to the working directory
- SQL_ECHO      true/1/yes turns on SQLAlchemy statement logging
"""

import os
from pathlib import Path
from typing import Any, Generator, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import Engine, make_url
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./clubcomp.db"
_TRUTHY = ("true", "1", "yes")


def env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in _TRUTHY


def build_engine(url: str, echo: bool = False, **engine_kwargs: Any) -> Engine:
    """
    Create an engine for `url`.

    SQLite connections are shared with worker threads (TestClient, sweeps),
    and a file database gets its parent directory created first.
    """
    parsed = make_url(url)
    connect_args = dict(engine_kwargs.pop("connect_args", {}))
    if parsed.get_backend_name() == "sqlite":
        connect_args.setdefault("check_same_thread", False)
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=echo, connect_args=connect_args, **engine_kwargs)


DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
engine: Engine = build_engine(DATABASE_URL, echo=env_flag("SQL_ECHO"))


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    with Session(engine) as session:
        yield session


def init_db(bind: Optional[Engine] = None) -> None:
    """Create every table registered by clubcomp.models."""
    import clubcomp.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
