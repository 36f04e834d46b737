"""
Shared fixtures: a fresh in-memory SQLite database per test and a scripted
model client standing in for the OpenAI backend.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from liftlog.db import Base, make_engine, init_db
from liftlog.main import create_app
from liftlog.services.workout import WorkoutService
from liftlog.tools.registry import ToolRegistry

from fakes import ScriptedClient


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def svc(db):
    return WorkoutService(db)


@pytest.fixture
def registry(session_factory):
    return ToolRegistry(session_factory)


@pytest.fixture
def make_client(session_factory):
    """Build a TestClient around an app wired to the test DB and a scripted model."""
    def _make(*steps, with_model=True):
        client = ScriptedClient(*steps) if with_model else None
        app = create_app(session_factory=session_factory, model_client=client)
        return TestClient(app), client
    return _make