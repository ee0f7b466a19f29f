"""Pytest fixtures: a file-backed SQLite database, fresh for every test."""
import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("EXPIRY_SWEEP_INTERVAL_SECONDS", "0")

from dataclasses import dataclass
from datetime import datetime

import pytest
from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from request_workflow.database import Base, get_db
from request_workflow.domain.clock import FixedClock
from request_workflow.domain.states import CAP_CREATE, CAP_RESCHEDULE, CAP_REVIEW
from request_workflow.main import app
from request_workflow.routers.requests import get_engine
from request_workflow.services.notifications import CollectingNotifier
from request_workflow.services.settings_service import SchedulingPolicy
from request_workflow.services.workflow_engine import WorkflowEngine

# Import all models so they register with Base.metadata
from request_workflow.models.user import User                      # noqa: F401
from request_workflow.models.event import Event                    # noqa: F401
from request_workflow.models.request import EventRequest           # noqa: F401
from request_workflow.models.request_history import RequestStatusEntry, RequestDecisionEntry  # noqa: F401
from request_workflow.models.system_settings import SystemSettings  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"

# Monday 2026-03-02, 10:00 in Asia/Manila
NOW_UTC = datetime(2026, 3, 2, 2, 0, 0)

LOCATION = "loc-north"
OTHER_LOCATION = "loc-south"
ORG = "org-red-cross"

REVIEWER_CAPS = [CAP_CREATE, CAP_REVIEW, CAP_RESCHEDULE]


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW_UTC)


@pytest.fixture
def policy():
    """Default limits, except several pending requests per owner."""
    return SchedulingPolicy(max_pending_requests=5)


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def engine(db, clock, notifier, policy):
    return WorkflowEngine.for_session(db, clock=clock, notifier=notifier, policy=policy)


@pytest.fixture(scope="function")
def client(session_factory, clock, notifier, policy):
    """FastAPI TestClient wired to the SQLite database and the fixed clock."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def _override_get_engine(db=Depends(get_db)):
        return WorkflowEngine.for_session(db, clock=clock, notifier=notifier, policy=policy)

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_engine] = _override_get_engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: users and requests
# ---------------------------------------------------------------------------
def make_user(
    db,
    user_id: str,
    authority: int,
    capabilities=(),
    coverage=(),
    organization_id=None,
    role_label: str = "",
    is_active: bool = True,
) -> User:
    """Insert a user directly and return it."""
    user = User(
        user_id=user_id,
        display_name=user_id.replace("u-", "").replace("-", " ").title(),
        role_label=role_label,
        authority=authority,
        capabilities=list(capabilities),
        coverage_location_ids=list(coverage),
        organization_id=organization_id,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    return user


@dataclass
class Cast:
    admin: str
    ops: str
    coordinator: str
    coordinator_b: str
    stakeholder: str
    stakeholder_b: str


@pytest.fixture
def cast(db) -> Cast:
    """A system admin, an operations admin, two coordinators and two stakeholders."""
    make_user(db, "u-admin", 100, role_label="System Admin")
    make_user(db, "u-ops", 80, REVIEWER_CAPS, role_label="Operational Admin")
    make_user(db, "u-coord-a", 60, REVIEWER_CAPS, coverage=[LOCATION], role_label="Coordinator")
    make_user(db, "u-coord-b", 60, REVIEWER_CAPS, coverage=[LOCATION], role_label="Coordinator")
    make_user(db, "u-stake-a", 30, [CAP_CREATE], coverage=[LOCATION], role_label="Stakeholder")
    make_user(db, "u-stake-b", 30, [CAP_CREATE], coverage=[LOCATION], role_label="Stakeholder")
    return Cast(
        admin="u-admin",
        ops="u-ops",
        coordinator="u-coord-a",
        coordinator_b="u-coord-b",
        stakeholder="u-stake-a",
        stakeholder_b="u-stake-b",
    )


def request_payload(day: str = "2026-03-04", **overrides) -> dict:
    """A valid BloodDrive request on ``day`` 09:00-12:00 local time."""
    payload = {
        "title": "Barangay Blood Drive",
        "category": "BloodDrive",
        "start_date": f"{day}T09:00:00",
        "end_date": f"{day}T12:00:00",
        "location_id": LOCATION,
        "target_donation": 50,
    }
    payload.update(overrides)
    return payload


def create_test_user(client: TestClient, name: str = "Test User", authority: int = 30, **extra) -> dict:
    """Helper: POST /api/users and return response JSON."""
    body = {"display_name": name, "authority": authority}
    body.update(extra)
    resp = client.post("/api/users/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()
