import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from practice import email_service
from practice.database import Base, get_db
from practice.domain.scheduling.clock import FixedClock, get_clock
from practice.main import app
from practice.models import PENDING, ROLE_ADMIN, ROLE_CLIENT, Appointment, Availability, Service, User
from practice.security import create_access_token

# A Wednesday; the following Monday is 2025-01-06
NOW = datetime(2025, 1, 1, 8, 0)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sent_emails(monkeypatch):
    """Replace the Resend call with a recorder"""
    sent = []

    async def fake_send_email(to, subject, mjml_content, from_address=None):
        sent.append({"to": to, "subject": subject, "body": mjml_content})
        return {"id": f"email-{len(sent)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def client(db, clock, sent_emails):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, email="client@example.com", name="Jordan Client", role=ROLE_CLIENT, **kwargs) -> User:
    user = User(name=name, email=email, role=role, email_verified=True, **kwargs)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def admin(db):
    return make_user(db, email="admin@example.com", name="Practice Admin", role=ROLE_ADMIN)


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def therapy(db):
    """A 60 minute, $120 service"""
    service = Service(
        title="Couples Counseling",
        description="Strengthen your relationship through better communication",
        duration=60,
        price=Decimal("120.00"),
        features=["Communication skills training"],
        is_active=True,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def weekday_windows(db):
    """Monday-Friday 09:00-12:00 and 13:00-17:00"""
    windows = []
    for day in range(1, 6):
        windows.append(Availability(day_of_week=day, start_time="09:00", end_time="12:00", is_active=True))
        windows.append(Availability(day_of_week=day, start_time="13:00", end_time="17:00", is_active=True))
    db.add_all(windows)
    db.commit()
    return windows


def make_appointment(db, user, service, date_time, status=PENDING, notes=None) -> Appointment:
    appointment = Appointment(user_id=user.id, service_id=service.id, date_time=date_time, status=status, notes=notes)
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment
