"""
Appointment Model - Stores appointment information and scheduling.

An appointment books a doctor for a patient over a half-open time interval.
Entity invariants are checked before every insert and update.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, CheckConstraint, Index, Integer, event, func
from sqlalchemy.orm import relationship
import enum
import uuid
from ..database import Base
from .exceptions import InvalidInterval, MissingCancellationReason
from .interval import TimeInterval, as_utc

class AppointmentStatus(str, enum.Enum):
    """Enum for appointment status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

# Appointments in these states hold their slot
ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

# No transition leaves these states
TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})

REASON_MAX_LENGTH = 500


def generate_appointment_id() -> str:
    return str(uuid.uuid4())


class Appointment(Base):
    """
    Appointment Model - Stores appointment information

    Fields:
    - id: Opaque identifier assigned at creation
    - doctor_id: User holding the DOCTOR role
    - patient_id: User holding the PATIENT role
    - start_time / end_time: Half-open interval [start_time, end_time)
    - status: Current status of the appointment
    - reason: Reason for the appointment
    - cancellation_reason: Why the appointment was cancelled; set only when cancelled
    - created_by / updated_by: Users who created and last changed the appointment
    - created_at / updated_at: Audit timestamps
    - version: Write counter guarding against lost updates
    """
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_interval"),
        CheckConstraint(
            "(status = 'CANCELLED' AND cancellation_reason IS NOT NULL AND cancellation_reason <> '') "
            "OR (status <> 'CANCELLED' AND cancellation_reason IS NULL)",
            name="ck_appointments_cancellation_reason"
        ),
        Index("ix_appointments_doctor_start", "doctor_id", "start_time"),
    )

    id = Column(String(36), primary_key=True, default=generate_appointment_id)
    doctor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(AppointmentStatus, name="appointment_status"),
        default=AppointmentStatus.PENDING,
        nullable=False
    )
    reason = Column(String(REASON_MAX_LENGTH), nullable=True)
    cancellation_reason = Column(String(REASON_MAX_LENGTH), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, server_default="1")

    # UPDATE and DELETE match on the version, so a stale copy cannot overwrite a newer row
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    patient = relationship("User", foreign_keys=[patient_id])

    def __repr__(self):
        """String representation of the Appointment model"""
        return (
            f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, patient_id={self.patient_id}, "
            f"start='{self.start_time}', status='{self.status}')>"
        )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @interval.setter
    def interval(self, value: TimeInterval) -> None:
        self.start_time = value.start
        self.end_time = value.end

    @property
    def duration_minutes(self) -> float:
        return self.interval.duration()

    @property
    def is_active(self) -> bool:
        """Whether the appointment still holds its slot"""
        return self.status in ACTIVE_STATUSES

    def has_started(self, now) -> bool:
        """Past appointments are those whose start is at or before `now`"""
        return as_utc(self.start_time) <= as_utc(now)

    @property
    def doctor_name(self):
        return self.doctor.full_name if self.doctor else None

    @property
    def patient_name(self):
        return self.patient.full_name if self.patient else None

    def validate(self) -> None:
        """
        Check entity invariants.

        Raises:
            InvalidInterval: if end_time <= start_time
            MissingCancellationReason: if cancelled without a reason
        """
        if self.start_time is None or self.end_time is None:
            raise InvalidInterval("Appointment start and end times are required")
        if as_utc(self.end_time) <= as_utc(self.start_time):
            raise InvalidInterval()
        if self.status == AppointmentStatus.CANCELLED:
            if not self.cancellation_reason or not self.cancellation_reason.strip():
                raise MissingCancellationReason()
        elif self.cancellation_reason is not None:
            self.cancellation_reason = None


@event.listens_for(Appointment, "before_insert")
@event.listens_for(Appointment, "before_update")
def validate_before_write(mapper, connection, target):
    target.validate()
