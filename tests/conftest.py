"""
conftest.py — Shared Test Fixtures for DebtWatch

Provides an in-memory SQLite database, a FastAPI TestClient wired to the
test session, and factory fixtures for clients.

Business Rules:
- All tests run against an isolated in-memory DB (no prod data risk)
- Rate limiting and the webhook secret are off unless a test enables them
- Each test function gets fresh tables

Called by: all test files via pytest autodiscovery
Depends on: debtwatch.models (Base), debtwatch.database (get_db)
"""

import os

# Must be set before importing debtwatch modules (settings load at import)
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["WEBHOOK_SECRET"] = ""
os.environ["MAKE_SYNC_WEBHOOK_URL"] = ""
os.environ["APP_URL"] = "http://localhost:8000"

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from debtwatch.models import Base, Client

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def make_client(db_session: Session):
    """Factory: make_client("xero-1", current_balance=800, streak_days=5, ...)."""
    from debtwatch.services.collection_service import classify_streak

    def _make(xero_contact_id: str, **fields) -> Client:
        streak = fields.pop("streak_days", 0)
        values = {
            "name": f"Client {xero_contact_id}",
            "email": f"{xero_contact_id}@example.com",
            "current_balance": Decimal("0"),
            "previous_balance": Decimal("0"),
            "week_change": Decimal("0"),
            "created_at": datetime.now(timezone.utc),
        }
        values.update(fields)
        client = Client(
            xero_contact_id=xero_contact_id,
            streak_days=streak,
            status=classify_streak(streak).value,
            **values,
        )
        db_session.add(client)
        db_session.commit()
        db_session.refresh(client)
        return client

    return _make


@pytest.fixture()
def test_client_row(make_client) -> Client:
    """A single client owing 800 with no streak."""
    return make_client(
        "xero-acme-001",
        name="Jane Smith",
        email="jane@acme.co",
        company="Acme Plumbing",
        phone="+61 400 000 000",
        current_balance=Decimal("800.00"),
    )


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """FastAPI TestClient with get_db overridden to use the test session."""
    from debtwatch.database import get_db
    from debtwatch.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
