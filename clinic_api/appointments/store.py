"""
Appointment Store - persistence boundary for the scheduling core.

Reads are plain queries. Writes that place an appointment on a doctor's
calendar are conditional: the doctor's user row is locked, the no-overlap rule
is re-verified and the write is committed in the same transaction, so two
concurrent bookings that both passed the availability check cannot both commit.
The row lock needs a database with SELECT ... FOR UPDATE (PostgreSQL); SQLite
ignores it and relies on its single-writer file lock instead.

Updates and deletes of an existing appointment are conditional on its version
counter. A write based on a stale copy matches no row and is refused with
ConcurrentUpdate instead of overwriting the newer state.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError
import logging

from ..database import store_guard
from ..users.models import User
from .exceptions import ConcurrentUpdate, NotFound, SchedulingConflict
from .interval import TimeInterval, overlap_filter
from .models import Appointment, AppointmentStatus, ACTIVE_STATUSES

# Set up logging
logger = logging.getLogger(__name__)

class AppointmentStore:
    """
    SQLAlchemy-backed appointment store.

    Args:
        db: Database session; the store commits or rolls back on it
    """
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _transaction(self, operation: str):
        """
        Roll back on any failure; surface timeouts as StoreUnavailable and stale writes as ConcurrentUpdate.
        """
        try:
            with store_guard(self.db, f"appointment {operation}"):
                yield
        except StaleDataError as e:
            logger.warning(f"Appointment {operation} refused: row changed since it was loaded")
            raise ConcurrentUpdate() from e

    def get(self, appointment_id: str, for_update: bool = False) -> Appointment:
        """
        Load an appointment.

        Args:
            appointment_id: ID of the appointment
            for_update: lock the row until the next commit or rollback; use it
                before changing the appointment

        Raises:
            NotFound: If the appointment does not exist
        """
        with self._transaction("get"):
            query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
            if for_update:
                query = query.with_for_update()
            appointment = query.first()
        if not appointment:
            raise NotFound("Appointment not found")
        return appointment

    def find_active_by_doctor_and_window(
        self,
        doctor_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        """
        Active appointments of a doctor that intersect [window_start, window_end).

        Args:
            doctor_id: ID of the doctor
            window_start: start of the window
            window_end: end of the window
            exclude_id: appointment to leave out (the one being rescheduled)

        Returns:
            List[Appointment]: matching appointments ordered by start time
        """
        window = TimeInterval(window_start, window_end)
        with self._transaction("query"):
            query = self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status.in_(list(ACTIVE_STATUSES)),
                overlap_filter(Appointment.start_time, Appointment.end_time, window)
            )
            if exclude_id:
                query = query.filter(Appointment.id != exclude_id)
            return query.order_by(Appointment.start_time).all()

    def list(
        self,
        doctor_id: Optional[int] = None,
        patient_id: Optional[int] = None,
        status: Optional[AppointmentStatus] = None,
        window: Optional[TimeInterval] = None
    ) -> List[Appointment]:
        """
        List appointments with doctor and patient loaded, ordered by start time.
        """
        with self._transaction("list"):
            query = self.db.query(Appointment).options(
                joinedload(Appointment.doctor),
                joinedload(Appointment.patient)
            )
            if doctor_id is not None:
                query = query.filter(Appointment.doctor_id == doctor_id)
            if patient_id is not None:
                query = query.filter(Appointment.patient_id == patient_id)
            if status is not None:
                query = query.filter(Appointment.status == status)
            if window is not None:
                query = query.filter(overlap_filter(Appointment.start_time, Appointment.end_time, window))
            return query.order_by(Appointment.start_time).all()

    def _lock_doctor_calendar(self, doctor_id: int) -> None:
        """Serialize writers on one doctor's calendar for the rest of the transaction"""
        doctor = self.db.query(User).filter(User.id == doctor_id).with_for_update().first()
        if not doctor:
            raise NotFound("Doctor not found")

    def _verify_slot_free(self, appointment: Appointment) -> None:
        interval = appointment.interval
        candidates = self.find_active_by_doctor_and_window(
            appointment.doctor_id, interval.start, interval.end, exclude_id=appointment.id
        )
        conflicts = [other.id for other in candidates if other.interval.overlaps(interval)]
        if conflicts:
            logger.warning(
                f"Commit-time conflict for doctor {appointment.doctor_id} "
                f"at {interval}: {conflicts}"
            )
            raise SchedulingConflict(conflicts)

    def insert(self, appointment: Appointment) -> Appointment:
        """
        Insert an appointment if the doctor has no overlapping active appointment.

        Raises:
            SchedulingConflict: If the slot was taken since the availability check
            StoreUnavailable: On timeout or connection failure
        """
        with self._transaction("insert"):
            if appointment.status in ACTIVE_STATUSES:
                self._lock_doctor_calendar(appointment.doctor_id)
                self._verify_slot_free(appointment)
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        return appointment

    def update(self, appointment: Appointment, recheck_interval: bool = False) -> Appointment:
        """
        Commit changes made to a loaded appointment.

        Args:
            appointment: appointment with pending attribute changes
            recheck_interval: re-verify the no-overlap rule under the doctor lock
                before committing; required whenever the interval or doctor changed

        Raises:
            SchedulingConflict: If the new slot overlaps another active appointment
            ConcurrentUpdate: If the row changed since the appointment was loaded
            StoreUnavailable: On timeout or connection failure
        """
        with self._transaction("update"):
            if recheck_interval and appointment.status in ACTIVE_STATUSES:
                self._lock_doctor_calendar(appointment.doctor_id)
                self._verify_slot_free(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        return appointment

    def delete(self, appointment: Appointment) -> None:
        """
        Delete an appointment.

        Raises:
            ConcurrentUpdate: If the row changed since the appointment was loaded
            StoreUnavailable: On timeout or connection failure
        """
        with self._transaction("delete"):
            self.db.delete(appointment)
            self.db.commit()
