"""
Availability Checker - decides whether a doctor is free for a candidate interval.

Only active appointments (pending, confirmed) block a slot. The decision is
made with TimeInterval.overlaps on the rows the store returns; the store's
window query is a prefilter built from the same predicate.
"""
from typing import List, Optional

from .exceptions import InvalidArguments
from .interval import TimeInterval
from .models import Appointment
from .store import AppointmentStore


def _validate_query(doctor_id, interval) -> None:
    if doctor_id is None or doctor_id == "":
        raise InvalidArguments("doctor_id is required")
    if not isinstance(interval, TimeInterval):
        raise InvalidArguments("A candidate time interval is required")
    if interval.end <= interval.start:
        raise InvalidArguments("Candidate interval must end after it starts")


def find_conflicts(
    store: AppointmentStore,
    doctor_id: int,
    interval: TimeInterval,
    exclude_appointment_id: Optional[str] = None
) -> List[Appointment]:
    """
    Active appointments of the doctor that overlap the candidate interval.

    Args:
        store: Appointment store
        doctor_id: ID of the doctor
        interval: Candidate interval
        exclude_appointment_id: Appointment to ignore, so an appointment being
            rescheduled does not conflict with itself

    Returns:
        List[Appointment]: overlapping active appointments, ordered by start

    Raises:
        InvalidArguments: If doctor_id is missing or the interval is invalid
    """
    _validate_query(doctor_id, interval)
    candidates = store.find_active_by_doctor_and_window(
        doctor_id, interval.start, interval.end, exclude_id=exclude_appointment_id
    )
    return [appointment for appointment in candidates if appointment.interval.overlaps(interval)]


def is_available(
    store: AppointmentStore,
    doctor_id: int,
    interval: TimeInterval,
    exclude_appointment_id: Optional[str] = None
) -> bool:
    """
    Whether the doctor has no active appointment overlapping the interval.

    Raises:
        InvalidArguments: If doctor_id is missing or the interval is invalid
    """
    return not find_conflicts(store, doctor_id, interval, exclude_appointment_id)
