"""
Tests for the appointment entity invariants.
"""
import pytest

from clinic_api.appointments.exceptions import InvalidInterval, MissingCancellationReason
from clinic_api.appointments.models import Appointment, AppointmentStatus, generate_appointment_id
from conftest import NOW, at


def _appointment(doctor, patient, start, end, **fields):
    return Appointment(
        id=generate_appointment_id(),
        doctor_id=doctor.id,
        patient_id=patient.id,
        start_time=start,
        end_time=end,
        **fields
    )


def test_defaults_to_pending(db, doctor, patient):
    appointment = _appointment(doctor, patient, at(10), at(11))
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    assert appointment.status == AppointmentStatus.PENDING
    assert appointment.is_active


def test_insert_with_inverted_interval_fails(db, doctor, patient):
    db.add(_appointment(doctor, patient, at(11), at(10)))
    with pytest.raises(InvalidInterval):
        db.commit()
    db.rollback()
    assert db.query(Appointment).count() == 0


def test_cancelled_without_reason_fails_on_write(db, doctor, patient):
    db.add(_appointment(doctor, patient, at(10), at(11), status=AppointmentStatus.CANCELLED))
    with pytest.raises(MissingCancellationReason):
        db.commit()
    db.rollback()


def test_update_to_cancelled_without_reason_fails(db, doctor, patient):
    appointment = _appointment(doctor, patient, at(10), at(11))
    db.add(appointment)
    db.commit()

    appointment.status = AppointmentStatus.CANCELLED
    appointment.cancellation_reason = "   "
    with pytest.raises(MissingCancellationReason):
        db.commit()
    db.rollback()
    db.refresh(appointment)
    assert appointment.status == AppointmentStatus.PENDING


def test_reason_is_dropped_when_not_cancelled(db, doctor, patient):
    appointment = _appointment(
        doctor, patient, at(10), at(11),
        status=AppointmentStatus.CONFIRMED,
        cancellation_reason="stale"
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    assert appointment.cancellation_reason is None


def test_interval_and_duration_read_back_as_utc(db, doctor, patient):
    appointment = _appointment(doctor, patient, at(10), at(10, 45))
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    assert appointment.interval.start == at(10)
    assert appointment.duration_minutes == 45
    assert not appointment.has_started(NOW)
    assert appointment.has_started(at(10))
