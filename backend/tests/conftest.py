# backend/tests/conftest.py
import os
import sys
import copy
import pathlib
import tempfile
import types
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# -------------------------------------------------------------------------------------------------
# Path & environment setup (must happen BEFORE importing the app)
# -------------------------------------------------------------------------------------------------

# Ensure project root (backend/) is importable
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Temp SQLite DB file for tests
TEST_DB_FILE = str(pathlib.Path(tempfile.gettempdir()) / "interview_session_test.sqlite")

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE}"
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("INTERVIEW_AGENT_PROVIDER", "http")
os.environ.setdefault("INTERVIEW_AGENT_URL", "http://agent.test")


# -------------------------------------------------------------------------------------------------
# Import app & modules AFTER env vars
# -------------------------------------------------------------------------------------------------
from main import app
from ai.agent_client import AgentStart, AgentTurn
from api import deps
from core import security
from db import models as m
from services.rooms import room_manager
from services.session_store import session_registry

# -------------------------------------------------------------------------------------------------
# Test DB engine + session factory
# -------------------------------------------------------------------------------------------------
engine = create_engine(
    f"sqlite:///{TEST_DB_FILE}", future=True, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="function", autouse=True)
def reset_state():
    """Fresh schema and empty in-memory registries before each test function."""
    m.Base.metadata.drop_all(bind=engine)
    m.Base.metadata.create_all(bind=engine)
    session_registry.clear()
    room_manager.clear()
    yield


@pytest.fixture(scope="function")
def db():
    """Yield a fresh DB session per test function."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# Override the app's DB dependency
app.dependency_overrides[deps.get_db] = _override_get_db


# -------------------------------------------------------------------------------------------------
# Scripted interview agent (no network)
# -------------------------------------------------------------------------------------------------
class FakeAgent:
    """
    Stands in for the external agent. `start` is returned (or raised) by
    initialize; `turns` is a queue of AgentTurn / exceptions for continue.
    Every call's keyword arguments are recorded.
    """

    def __init__(self):
        self.start = AgentStart(
            first_question="Tell me about yourself.",
            all_questions={"questions": ["Tell me about yourself.", "Describe a challenge you solved."]},
            status="in_progress",
        )
        self.turns = []
        self.init_calls = []
        self.continue_calls = []

    def next_turn(self, next_response=None, status="in_progress", **extra):
        self.turns.append(AgentTurn(next_question=next_response, status=status, **extra))

    async def initialize_interview(self, **kwargs):
        self.init_calls.append(dict(kwargs))
        if isinstance(self.start, Exception):
            raise self.start
        return self.start

    async def continue_interview(self, **kwargs):
        self.continue_calls.append(copy.deepcopy(kwargs))
        item = self.turns.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(scope="function")
def agent():
    fake = FakeAgent()
    app.dependency_overrides[deps.get_agent_client] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.pop(deps.get_agent_client, None)


# -------------------------------------------------------------------------------------------------
# TestClient (one portal/event loop for REST and websockets)
# -------------------------------------------------------------------------------------------------
@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {security.create_access_token(subject=str(user.id))}"}


def token_for(user) -> str:
    return security.create_access_token(subject=str(user.id))


# -------------------------------------------------------------------------------------------------
# Seed data: candidate + HR owner + outsider, one job, one scheduled interview
# -------------------------------------------------------------------------------------------------
@pytest.fixture(scope="function")
def make_interview(db):
    def _make(
        room_code="ROOM42",
        job_title="Backend Engineer",
        job_description="Build and run our APIs.",
        number_of_questions=3,
        screening_summary=None,
    ):
        candidate = m.User(email=f"cand-{room_code}@example.com", full_name="Casey Candidate", role=m.UserRole.candidate)
        hr = m.User(email=f"hr-{room_code}@example.com", full_name="Harper HR", role=m.UserRole.hr)
        outsider = m.User(email=f"other-{room_code}@example.com", role=m.UserRole.candidate)
        db.add_all([candidate, hr, outsider])
        db.flush()

        job = m.Job(title=job_title, description=job_description, hr_id=hr.id)
        db.add(job)
        db.flush()

        application = m.Application(job_id=job.id, candidate_id=candidate.id)
        db.add(application)
        db.flush()
        if screening_summary is not None:
            db.add(m.Screening(application_id=application.id, summary=screening_summary, total_score=75))

        now = datetime.now(timezone.utc)
        interview = m.Interview(
            room_code=room_code,
            candidate_id=candidate.id,
            job_id=job.id,
            start_at=now - timedelta(minutes=5),
            end_at=now + timedelta(minutes=55),
            number_of_questions=number_of_questions,
        )
        db.add(interview)
        db.commit()
        for obj in (candidate, hr, outsider, job, interview):
            db.refresh(obj)
        return types.SimpleNamespace(
            candidate=candidate, hr=hr, outsider=outsider, job=job, interview=interview, room=room_code
        )

    return _make


@pytest.fixture(scope="function")
def seeded(make_interview):
    return make_interview()


@pytest.fixture(scope="session")
def auth():
    """auth(user) -> Authorization header dict for that user."""
    return auth_headers


@pytest.fixture(scope="session")
def token():
    """token(user) -> raw JWT, as the websocket auth frame expects it."""
    return token_for
