"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all Smart HealthMate tests.
Fixtures include database sessions, the test client, sample rows and a
fake email notifier.
"""

import os
import sys
from datetime import datetime, date
from typing import Generator, List

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["EMAIL_API_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base
from models import User, Medicine, ScheduledDose, Reminder, AlertSettings
from actions.snapshots import ReminderType
from api.deps import get_db
from tools.notification_service import NotificationResult
from app import app


# Reference instant used across tests: Monday evening, after both daily doses
NOW = datetime(2024, 6, 10, 21, 0)


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def test_user(db_session: Session) -> User:
    user = User(name="Asha", email="asha@example.com")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_medicine(db_session: Session, test_user: User) -> Medicine:
    """Metformin 500mg at 08:00 and 20:00 for June 2024"""
    medicine = Medicine(
        user_id=test_user.id,
        name="Metformin",
        dosage="500mg",
        timing_string="08:00 AM, 08:00 PM",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        is_active=True,
        doses=[
            ScheduledDose(time_of_day="08:00"),
            ScheduledDose(time_of_day="20:00")
        ]
    )
    db_session.add(medicine)
    db_session.commit()
    db_session.refresh(medicine)
    return medicine


@pytest.fixture
def test_reminder(db_session: Session, test_user: User) -> Reminder:
    reminder = Reminder(
        user_id=test_user.id,
        title="Morning BP check",
        reminder_type=ReminderType.CHECKUP,
        times=["07:00", "19:00"],
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        is_active=True,
        completed_times=[],
        last_reset_date=datetime(2024, 6, 10, 6, 0)
    )
    db_session.add(reminder)
    db_session.commit()
    db_session.refresh(reminder)
    return reminder


@pytest.fixture
def test_alert_settings(db_session: Session, test_user: User) -> AlertSettings:
    settings = AlertSettings(
        user_id=test_user.id,
        emergency_contacts=["care@example.com"]
    )
    db_session.add(settings)
    db_session.commit()
    db_session.refresh(settings)
    return settings


# ==================== MOCK FIXTURES ====================

class FakeNotifier:
    """Records sends instead of calling the email API"""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: List[tuple] = []

    async def send_email(self, recipients, subject, body) -> NotificationResult:
        self.sent.append((list(recipients), subject, body))
        if self.succeed:
            return NotificationResult(success=True, message_id="test-message", delivered_at=NOW)
        return NotificationResult(success=False, error="Email API error: HTTP 500")


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(succeed=False)


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "database: Tests that use the database")
