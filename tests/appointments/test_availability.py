"""
Tests for the doctor availability checker.
"""
from datetime import timedelta
import pytest

from clinic_api.appointments.availability import find_conflicts, is_available
from clinic_api.appointments.exceptions import InvalidArguments
from clinic_api.appointments.models import AppointmentStatus
from clinic_api.appointments.service import update_status
from clinic_api.appointments.store import AppointmentStore
from conftest import NOW, slot


@pytest.fixture
def store(db):
    return AppointmentStore(db)


def test_free_calendar_is_available(store, doctor):
    assert is_available(store, doctor.id, slot("10:00", "10:30"))


def test_overlapping_pending_appointment_blocks(store, doctor, book):
    existing = book(slot("10:00", "10:30"))
    assert not is_available(store, doctor.id, slot("10:15", "10:45"))
    assert [a.id for a in find_conflicts(store, doctor.id, slot("10:15", "10:45"))] == [existing.id]


def test_confirmed_appointment_blocks(db, store, doctor, book, staff):
    existing = book(slot("10:00", "10:30"))
    update_status(db, existing.id, AppointmentStatus.CONFIRMED, None, staff.id, NOW)
    assert not is_available(store, doctor.id, slot("09:45", "10:05"))


def test_boundary_touching_does_not_block(store, doctor, book):
    book(slot("10:00", "10:30"))
    assert is_available(store, doctor.id, slot("10:30", "11:00"))
    assert is_available(store, doctor.id, slot("09:30", "10:00"))


@pytest.mark.parametrize("status, reason", [
    (AppointmentStatus.CANCELLED, "Patient called in sick"),
    (AppointmentStatus.COMPLETED, None),
    (AppointmentStatus.NO_SHOW, None),
])
def test_inactive_appointments_never_block(db, store, doctor, book, staff, status, reason):
    # Book in the past so completed and no-show are realistic
    past = slot("06:00", "06:30")
    existing = book(past, now=NOW - timedelta(days=1))
    update_status(db, existing.id, status, reason, staff.id, NOW)
    assert is_available(store, doctor.id, past)


def test_other_doctors_appointments_do_not_block(store, doctor, other_doctor, book):
    book(slot("10:00", "10:30"), doctor_id=other_doctor.id)
    assert is_available(store, doctor.id, slot("10:00", "10:30"))


def test_excluding_an_appointment_ignores_it(store, doctor, book):
    existing = book(slot("09:00", "09:30"))
    assert not is_available(store, doctor.id, slot("09:00", "09:30"))
    assert is_available(store, doctor.id, slot("09:00", "09:30"), exclude_appointment_id=existing.id)


def test_missing_doctor_is_invalid(store):
    with pytest.raises(InvalidArguments):
        is_available(store, None, slot("10:00", "10:30"))


def test_candidate_must_be_an_interval(store, doctor):
    with pytest.raises(InvalidArguments):
        is_available(store, doctor.id, (NOW, NOW + timedelta(minutes=30)))
