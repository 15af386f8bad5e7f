"""
Appointment Service - scheduling operations and the appointment state machine.

Every operation validates first and writes once: a failed call leaves no
partial state behind. Operations take `now` explicitly; routers supply it from
the clock dependency.

State machine:

    pending   -> confirmed | completed | no-show | cancelled
    confirmed -> confirmed | completed | no-show | cancelled
    completed, no-show, cancelled -> (nothing)

Once an appointment has started it may only move to completed, no-show or
cancelled.
"""
from datetime import datetime
from typing import Callable, List, Optional, TypeVar, Union
from sqlalchemy.orm import Session
import logging

from ..exceptions import AppException
from ..users.models import UserRole
from ..users.service import user_exists
from .availability import find_conflicts
from .exceptions import (
    AlreadyCancelled,
    ConcurrentUpdate,
    InvalidArguments,
    InvalidInterval,
    InvalidStatusTransition,
    MissingCancellationReason,
    NotFound,
    PastAppointmentImmutable,
    DeletionNotAllowed,
    SchedulingConflict,
)
from .interval import TimeInterval
from .models import (
    Appointment,
    AppointmentStatus,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    REASON_MAX_LENGTH,
    generate_appointment_id,
)
from .store import AppointmentStore

# Set up logging
logger = logging.getLogger(__name__)

# Loads of an appointment per write before a concurrent change is reported
WRITE_ATTEMPTS = 3

T = TypeVar("T")

def _clean_reason(reason: Optional[str], field: str = "reason") -> Optional[str]:
    if reason is None:
        return None
    reason = reason.strip()
    if len(reason) > REASON_MAX_LENGTH:
        raise InvalidArguments(f"{field} must be at most {REASON_MAX_LENGTH} characters")
    return reason or None

def _coerce_status(value: Union[str, AppointmentStatus]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise InvalidArguments(f"Unknown appointment status '{value}'")

def _require_future(interval: TimeInterval, now: datetime) -> None:
    if not interval.is_future(now):
        raise InvalidInterval("Appointments must start in the future")

def check_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    has_started: bool,
    cancellation_reason: Optional[str] = None
) -> None:
    """
    Apply the state-machine guards to a requested status change.

    Args:
        current: Status the appointment is in
        target: Requested status
        has_started: Whether the appointment's start is at or before now
        cancellation_reason: Reason supplied with the request

    Raises:
        AlreadyCancelled: If the appointment is cancelled
        InvalidStatusTransition: If leaving completed/no-show, or moving back to pending
        PastAppointmentImmutable: If a started appointment targets pending or confirmed
        MissingCancellationReason: If cancelling without a reason
    """
    if current == AppointmentStatus.CANCELLED:
        raise AlreadyCancelled()
    if current in TERMINAL_STATUSES:
        raise InvalidStatusTransition(current.value, target.value)
    if has_started and target in ACTIVE_STATUSES:
        raise PastAppointmentImmutable()
    if target == AppointmentStatus.PENDING:
        raise InvalidStatusTransition(current.value, target.value)
    if target == AppointmentStatus.CANCELLED and not (cancellation_reason and cancellation_reason.strip()):
        raise MissingCancellationReason()

def create_appointment(
    db: Session,
    doctor_id: int,
    patient_id: int,
    interval: TimeInterval,
    reason: Optional[str],
    created_by: int,
    now: datetime
) -> Appointment:
    """
    Book a doctor for a patient.

    Args:
        db: Database session
        doctor_id: User holding the DOCTOR role
        patient_id: User holding the PATIENT role
        interval: Requested time interval
        reason: Reason for the visit (optional)
        created_by: User making the booking
        now: Current time

    Returns:
        Appointment: The new pending appointment

    Raises:
        InvalidInterval: If the interval does not start in the future
        NotFound: If doctor, patient or creator does not exist in that role
        SchedulingConflict: If the doctor has an overlapping active appointment
        StoreUnavailable: On database timeout
    """
    _require_future(interval, now)
    reason = _clean_reason(reason)

    if not user_exists(db, doctor_id, UserRole.DOCTOR):
        raise NotFound("Doctor not found")
    if not user_exists(db, patient_id, UserRole.PATIENT):
        raise NotFound("Patient not found")
    if not user_exists(db, created_by):
        raise NotFound("Creating user not found")

    store = AppointmentStore(db)
    conflicts = find_conflicts(store, doctor_id, interval)
    if conflicts:
        logger.warning(f"Booking rejected: doctor {doctor_id} is busy at {interval}")
        raise SchedulingConflict([appointment.id for appointment in conflicts])

    appointment = Appointment(
        id=generate_appointment_id(),
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=AppointmentStatus.PENDING,
        reason=reason,
        created_by=created_by,
        updated_by=created_by,
        created_at=now,
        updated_at=now,
    )
    appointment.interval = interval
    store.insert(appointment)
    logger.info(f"Appointment {appointment.id} booked for doctor {doctor_id} at {interval} by user {created_by}")
    return appointment

def _write_with_retry(store: AppointmentStore, appointment_id: str, apply: Callable[[Appointment], T]) -> T:
    """
    Load an appointment under a row lock and apply a change to it.

    If another writer changed the row between the load and the commit, the
    change is re-applied to a fresh copy, so its guards judge the current state.
    """
    for attempt in range(1, WRITE_ATTEMPTS + 1):
        appointment = store.get(appointment_id, for_update=True)
        try:
            return apply(appointment)
        except ConcurrentUpdate:
            if attempt == WRITE_ATTEMPTS:
                raise
            logger.warning(f"Appointment {appointment_id} changed while being written, reloading ({attempt}/{WRITE_ATTEMPTS})")
        except AppException:
            # releases the row lock taken by the load
            store.db.rollback()
            raise

def update_status(
    db: Session,
    appointment_id: str,
    new_status: Union[str, AppointmentStatus],
    reason: Optional[str],
    actor_id: int,
    now: datetime
) -> Appointment:
    """
    Move an appointment through the state machine.

    Args:
        db: Database session
        appointment_id: ID of the appointment
        new_status: Requested status
        reason: Cancellation reason; required when cancelling, ignored otherwise
        actor_id: User making the change
        now: Current time

    Returns:
        Appointment: Updated appointment

    Raises:
        NotFound: If the appointment does not exist
        AlreadyCancelled, InvalidStatusTransition, PastAppointmentImmutable,
        MissingCancellationReason: If the state machine rejects the change
        StoreUnavailable: On database timeout
    """
    target = _coerce_status(new_status)
    reason = _clean_reason(reason, "cancellation_reason") if target == AppointmentStatus.CANCELLED else None

    def apply(appointment: Appointment) -> Appointment:
        current = appointment.status
        try:
            check_transition(current, target, appointment.has_started(now), reason)
        except (AlreadyCancelled, InvalidStatusTransition, PastAppointmentImmutable, MissingCancellationReason) as e:
            logger.warning(f"Status change {current.value} -> {target.value} rejected for appointment {appointment_id}: {e.detail}")
            raise

        appointment.status = target
        appointment.cancellation_reason = reason
        appointment.updated_by = actor_id
        appointment.updated_at = now
        store.update(appointment)
        logger.info(f"Appointment {appointment_id} moved from {current.value} to {target.value} by user {actor_id}")
        return appointment

    store = AppointmentStore(db)
    return _write_with_retry(store, appointment_id, apply)

def reschedule_appointment(
    db: Session,
    appointment_id: str,
    interval: TimeInterval,
    actor_id: int,
    now: datetime,
    doctor_id: Optional[int] = None
) -> Appointment:
    """
    Move an active, not-yet-started appointment to a new interval and/or doctor.

    The availability check excludes the appointment itself, so rescheduling to
    the interval it already occupies succeeds.

    Raises:
        NotFound: If the appointment or the new doctor does not exist
        AlreadyCancelled: If the appointment is cancelled
        InvalidStatusTransition: If the appointment is completed or no-show
        PastAppointmentImmutable: If the appointment has already started
        InvalidInterval: If the new interval does not start in the future
        SchedulingConflict: If the new slot overlaps another active appointment
        StoreUnavailable: On database timeout
    """
    def apply(appointment: Appointment) -> Appointment:
        if appointment.status == AppointmentStatus.CANCELLED:
            raise AlreadyCancelled()
        if appointment.status in TERMINAL_STATUSES:
            raise InvalidStatusTransition(
                appointment.status.value,
                appointment.status.value,
                detail=f"Cannot reschedule a {appointment.status.value} appointment"
            )
        if appointment.has_started(now):
            raise PastAppointmentImmutable("Appointments that have already started cannot be rescheduled")
        _require_future(interval, now)

        target_doctor = doctor_id if doctor_id is not None else appointment.doctor_id
        if target_doctor != appointment.doctor_id and not user_exists(db, target_doctor, UserRole.DOCTOR):
            raise NotFound("Doctor not found")

        conflicts = find_conflicts(store, target_doctor, interval, exclude_appointment_id=appointment.id)
        if conflicts:
            logger.warning(f"Reschedule of {appointment_id} rejected: doctor {target_doctor} is busy at {interval}")
            raise SchedulingConflict([other.id for other in conflicts])

        appointment.doctor_id = target_doctor
        appointment.interval = interval
        appointment.updated_by = actor_id
        appointment.updated_at = now
        store.update(appointment, recheck_interval=True)
        logger.info(f"Appointment {appointment_id} rescheduled to {interval} with doctor {target_doctor} by user {actor_id}")
        return appointment

    store = AppointmentStore(db)
    return _write_with_retry(store, appointment_id, apply)

def delete_appointment(db: Session, appointment_id: str, now: datetime) -> None:
    """
    Delete an appointment that has not started yet, or any cancelled appointment.

    Raises:
        NotFound: If the appointment does not exist
        DeletionNotAllowed: If the appointment has started and was not cancelled
        StoreUnavailable: On database timeout
    """
    def apply(appointment: Appointment) -> None:
        if appointment.status != AppointmentStatus.CANCELLED and appointment.has_started(now):
            logger.warning(f"Deletion of appointment {appointment_id} rejected: historical record")
            raise DeletionNotAllowed()
        store.delete(appointment)
        logger.info(f"Appointment {appointment_id} deleted")

    store = AppointmentStore(db)
    _write_with_retry(store, appointment_id, apply)

def get_appointment(db: Session, appointment_id: str) -> Appointment:
    """
    Get an appointment by ID.

    Raises:
        NotFound: If the appointment does not exist
    """
    return AppointmentStore(db).get(appointment_id)

def list_appointments(
    db: Session,
    doctor_id: Optional[int] = None,
    patient_id: Optional[int] = None,
    status: Optional[Union[str, AppointmentStatus]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Appointment]:
    """
    List appointments, optionally for one doctor or patient, one status, or a time window.

    Raises:
        InvalidArguments: If only one window bound is given
        InvalidInterval: If the window ends before it starts
    """
    if (start is None) != (end is None):
        raise InvalidArguments("start and end must be given together")
    window = TimeInterval(start, end) if start is not None else None
    status = _coerce_status(status) if status is not None else None
    return AppointmentStore(db).list(doctor_id=doctor_id, patient_id=patient_id, status=status, window=window)
