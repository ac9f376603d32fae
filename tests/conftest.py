import os

# Environment must be fixed before gatherease.core.settings is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["SENDGRID_API_KEY"] = "your_sendgrid_api_key_here"
os.environ["APP_URL"] = "https://app.gatherease.test"
for _var in ("WHATSAPP_API_URL", "WHATSAPP_API_TOKEN", "SMS_API_URL", "SMS_API_KEY", "FIREBASE_CERT_JSON"):
    os.environ.pop(_var, None)

import pytest
from datetime import datetime
from uuid import uuid4
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gatherease.main import app
from gatherease.db import Base, get_db
from gatherease.models import Attendee, AttendeeStatus, Event, EventStatus, SendTiming, SurveyTemplate

# Use SQLite in-memory for test DB
TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
# In-memory SQLite needs a StaticPool so the TestClient's sessions and the
# fixtures' sessions see the same database.
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Dependency override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(autouse=True)
def setup_test_db():
    # recreate schema for each test to ensure isolation
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def db_session():
    # use the testing session factory bound to the in-memory SQLite engine
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

# --- Outbound delivery mocks (autouse) ---
@pytest.fixture(autouse=True)
def mock_outbound_sends(monkeypatch):
    """Prevent real SendGrid / WhatsApp / SMS network calls."""
    from gatherease.services import email as email_mod

    monkeypatch.setattr(email_mod, "send_email", lambda *args, **kwargs: True)
    yield

# --- Domain factories ---
def _utc(value: str) -> datetime:
    """Parse an ISO instant into the naive-UTC form the models store."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)

@pytest.fixture
def utc():
    return _utc

@pytest.fixture
def make_event(db_session):
    def _make(start="2025-01-01T08:00:00Z", end="2025-01-01T10:00:00Z",
              status=EventStatus.published, name="Spring Meetup", location="Main Hall"):
        event = Event(
            name=name,
            location=location,
            start_date=_utc(start),
            end_date=_utc(end),
            status=status,
            created_by_id="organizer-1",
        )
        db_session.add(event)
        db_session.commit()
        return event
    return _make

@pytest.fixture
def make_attendee(db_session):
    def _make(event, status=AttendeeStatus.registered, name=None, phone=None, registered_at=None):
        user_id = f"user-{uuid4().hex[:8]}"
        attendee = Attendee(
            event_id=event.id,
            user_id=user_id,
            name=name or f"Attendee {user_id[-4:]}",
            email=f"{user_id}@example.com",
            phone=phone,
            status=status,
        )
        if registered_at is not None:
            attendee.registered_at = _utc(registered_at)
        db_session.add(attendee)
        db_session.commit()
        return attendee
    return _make

@pytest.fixture
def make_template(db_session):
    def _make(event, send_timing=SendTiming.after_event, send_delay=1.0, send_time=None,
              reminder_enabled=False, reminder_delay=None, is_active=True):
        template = SurveyTemplate(
            event_id=event.id,
            name="Post-event feedback",
            is_active=is_active,
            send_timing=send_timing,
            send_delay=send_delay,
            send_time=_utc(send_time) if send_time else None,
            reminder_enabled=reminder_enabled,
            reminder_delay=reminder_delay,
            created_by_id="organizer-1",
        )
        db_session.add(template)
        db_session.commit()
        return template
    return _make
