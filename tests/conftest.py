"""
Test configuration for the clinic scheduling backend.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_api.database import Base, get_db
from clinic_api.main import app
from clinic_api.core.clock import get_clock, fixed_clock
from clinic_api.appointments.interval import TimeInterval
from clinic_api.appointments.service import create_appointment
from clinic_api.users.models import User, UserRole

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Frozen "now" for every test: Tuesday 2026-10-20 08:00 UTC
NOW = datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc)

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    """A time on the day of NOW (or `days` later), in UTC"""
    return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)


def slot(start: str, end: str, days: int = 0) -> TimeInterval:
    """TimeInterval from 'HH:MM' strings on the day of NOW"""
    start_h, start_m = (int(part) for part in start.split(":"))
    end_h, end_m = (int(part) for part in end.split(":"))
    return TimeInterval(at(start_h, start_m, days), at(end_h, end_m, days))


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session and a frozen clock.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the get_db and get_clock dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock(NOW)

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


def _make_user(db, email: str, full_name: str, role: UserRole) -> User:
    user = User(email=email, full_name=full_name, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def doctor(db):
    return _make_user(db, "house@ppth-clinic.org", "Gregory House", UserRole.DOCTOR)


@pytest.fixture
def other_doctor(db):
    return _make_user(db, "wilson@ppth-clinic.org", "James Wilson", UserRole.DOCTOR)


@pytest.fixture
def patient(db):
    return _make_user(db, "patient@ppth-clinic.org", "Jane Doe", UserRole.PATIENT)


@pytest.fixture
def staff(db):
    return _make_user(db, "desk@ppth-clinic.org", "Front Desk", UserRole.STAFF)


@pytest.fixture
def book(db, doctor, patient, staff):
    """
    Book an appointment with the default doctor and patient.

    `now` can be moved back to create appointments that are in the past
    relative to NOW.
    """
    def _book(interval: TimeInterval, doctor_id: int = None, now: datetime = NOW, reason: str = None):
        return create_appointment(
            db,
            doctor_id=doctor_id or doctor.id,
            patient_id=patient.id,
            interval=interval,
            reason=reason,
            created_by=staff.id,
            now=now
        )
    return _book
