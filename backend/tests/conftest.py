import os

# Keep app startup off the on-disk default database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from clubcomp.database import build_engine, get_session, init_db  # noqa: E402
from clubcomp.main import app  # noqa: E402
from clubcomp.services.store import SqlModelStore  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables dropped and recreated per test so ids start at 1 every time
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    SQLModel.metadata.drop_all(test_engine)
    init_db(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="store")
def store_fixture(session: Session) -> SqlModelStore:
    return SqlModelStore(session)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Test client with the database session overridden.

    The override is set BEFORE TestClient() and stays in place for the whole
    test so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
