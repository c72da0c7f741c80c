"""Pytest fixtures — file-backed SQLite database, fresh schema per test."""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REPORT_SCHEDULER_ENABLED"] = "false"
os.environ["REPORT_RECIPIENTS"] = "reports@labcenter.org"
os.environ["TIMEZONE"] = "UTC"

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from diagnostic_center.database import Base, get_db
from diagnostic_center.dependencies import get_mailer
from diagnostic_center.main import app

# Import all models so they register with Base.metadata
from diagnostic_center.models.user import User, UserRole            # noqa: F401
from diagnostic_center.models.appointment import Appointment        # noqa: F401
from diagnostic_center.models.activity_log import ActivityLog       # noqa: F401
from diagnostic_center.services import user_store
from diagnostic_center.services.auth_service import Actor

SQLITE_URL = "sqlite:///./test.db"
DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------
class FakeMailer:
    """Records every message instead of talking to an SMTP server."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, csv_bytes: bytes, filename: str, recipients: list[str], summary_text: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("smtp down")
        self.sent.append({
            "csv": csv_bytes.decode("utf-8"),
            "filename": filename,
            "recipients": list(recipients),
            "summary": summary_text,
        })


class FakeNotifier:
    """Collects broadcasts; optionally raises to simulate a dead channel."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events = []

    def broadcast(self, event_kind: str, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("channel down")
        self.events.append((event_kind, payload))


@pytest.fixture
def mailer(client):
    """Swap the app's SMTP mailer for a FakeMailer."""
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    return fake


@pytest.fixture
def notifier():
    return FakeNotifier()


# ---------------------------------------------------------------------------
# Helpers: accounts and tokens
# ---------------------------------------------------------------------------
def create_test_user(db, name: str = "Test Agent", email: str = "agent@labcenter.org",
                     role: UserRole = UserRole.agent, password: str = DEFAULT_PASSWORD) -> User:
    """Helper — create a user directly in the store."""
    return user_store.create_user(db, name, email, password, role=role)


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper — POST /api/auth/login and return the access token."""
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    return {"Authorization": f"Bearer {login(client, email, password)}"}


def appointment_payload(**overrides) -> dict:
    payload = {
        "patient_name": "Ravi Kumar",
        "test_name": "Complete Blood Count",
        "branch_location": "Main Branch",
        "appointment_date": "2026-10-20T09:30:00+00:00",
        "amount": "1000.00",
        "advance_amount": "250.50",
        "pro_details": "Referred by Dr. Mehta",
        "contact_number": "9876543210",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin(db):
    return create_test_user(db, name="Head Admin", email="admin@labcenter.org", role=UserRole.admin)


@pytest.fixture
def agent(db):
    return create_test_user(db, name="Front Desk", email="agent@labcenter.org")


@pytest.fixture
def admin_actor(admin):
    return Actor.from_user(admin)


@pytest.fixture
def agent_actor(agent):
    return Actor.from_user(agent)


@pytest.fixture
def admin_headers(client, admin):
    return auth_headers(client, "admin@labcenter.org")


@pytest.fixture
def agent_headers(client, agent):
    return auth_headers(client, "agent@labcenter.org")
