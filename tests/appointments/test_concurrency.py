"""
Tests for concurrent writers on the same appointment.

Two sessions on a file-backed database stand in for two API requests: the
second one holds a copy loaded before the first one committed.
"""
from datetime import timedelta
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic_api.database import Base
from clinic_api.appointments.exceptions import AlreadyCancelled, ConcurrentUpdate, InvalidStatusTransition
from clinic_api.appointments.models import Appointment, AppointmentStatus
from clinic_api.appointments.service import (
    create_appointment,
    delete_appointment,
    get_appointment,
    update_status,
)
from clinic_api.appointments.store import AppointmentStore
from clinic_api.users.models import User, UserRole
from conftest import NOW, slot


@pytest.fixture
def sessions(tmp_path):
    """
    Two independent sessions on one SQLite file.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clinic.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    first, second = factory(), factory()
    try:
        yield first, second
    finally:
        first.close()
        second.close()
        engine.dispose()


@pytest.fixture
def booked(sessions):
    """
    A pending appointment committed through the first session.

    Returns:
        tuple: (appointment id, staff user id)
    """
    first, _ = sessions
    doctor = User(email="house@ppth-clinic.org", full_name="Gregory House", role=UserRole.DOCTOR, is_active=True)
    patient = User(email="patient@ppth-clinic.org", full_name="Jane Doe", role=UserRole.PATIENT, is_active=True)
    staff = User(email="desk@ppth-clinic.org", full_name="Front Desk", role=UserRole.STAFF, is_active=True)
    first.add_all([doctor, patient, staff])
    first.commit()

    appointment = create_appointment(first, doctor.id, patient.id, slot("10:00", "10:30"), None, staff.id, NOW)
    return appointment.id, staff.id


def _fresh(sessions, appointment_id):
    first, _ = sessions
    first.expire_all()
    return get_appointment(first, appointment_id)


def test_stale_copy_cannot_leave_completed(sessions, booked):
    first, second = sessions
    appointment_id, staff_id = booked

    assert get_appointment(second, appointment_id).status == AppointmentStatus.PENDING
    update_status(first, appointment_id, AppointmentStatus.COMPLETED, None, staff_id, NOW)

    with pytest.raises(InvalidStatusTransition):
        update_status(second, appointment_id, AppointmentStatus.NO_SHOW, None, staff_id, NOW)

    assert _fresh(sessions, appointment_id).status == AppointmentStatus.COMPLETED


def test_stale_copy_sees_cancellation(sessions, booked):
    first, second = sessions
    appointment_id, staff_id = booked

    get_appointment(second, appointment_id)
    update_status(first, appointment_id, AppointmentStatus.CANCELLED, "Clinic closed", staff_id, NOW)

    with pytest.raises(AlreadyCancelled):
        update_status(second, appointment_id, AppointmentStatus.COMPLETED, None, staff_id, NOW)

    stored = _fresh(sessions, appointment_id)
    assert stored.status == AppointmentStatus.CANCELLED
    assert stored.cancellation_reason == "Clinic closed"


def test_allowed_change_is_reapplied_after_concurrent_write(sessions, booked):
    first, second = sessions
    appointment_id, staff_id = booked

    get_appointment(second, appointment_id)
    update_status(first, appointment_id, AppointmentStatus.CONFIRMED, None, staff_id, NOW)

    later = NOW + timedelta(minutes=5)
    confirmed = update_status(second, appointment_id, AppointmentStatus.CONFIRMED, None, staff_id, later)
    assert confirmed.status == AppointmentStatus.CONFIRMED

    stored = _fresh(sessions, appointment_id)
    assert stored.status == AppointmentStatus.CONFIRMED
    assert stored.updated_at.replace(tzinfo=None) == later.replace(tzinfo=None)
    assert stored.version == 3


def test_store_refuses_write_from_stale_copy(sessions, booked):
    first, second = sessions
    appointment_id, staff_id = booked

    stale = get_appointment(second, appointment_id)
    update_status(first, appointment_id, AppointmentStatus.CONFIRMED, None, staff_id, NOW)

    stale.status = AppointmentStatus.NO_SHOW
    with pytest.raises(ConcurrentUpdate) as exc_info:
        AppointmentStore(second).update(stale)

    assert exc_info.value.status_code == 503
    assert exc_info.value.to_dict()["retryable"] is True
    assert _fresh(sessions, appointment_id).status == AppointmentStatus.CONFIRMED


def test_stale_delete_is_rejudged_on_current_row(sessions, booked):
    first, second = sessions
    appointment_id, staff_id = booked

    get_appointment(second, appointment_id)
    update_status(first, appointment_id, AppointmentStatus.CANCELLED, "Patient moved away", staff_id, NOW)

    delete_appointment(second, appointment_id, NOW)

    first.expire_all()
    assert first.query(Appointment).filter(Appointment.id == appointment_id).count() == 0
