"""
Scheduling exceptions.

Validation errors (InvalidInterval, InvalidArguments, MissingCancellationReason)
are raised before the store is touched. Business-rule rejections are always
reported, never resolved automatically. StoreUnavailable and its ConcurrentUpdate
subclass are the only retryable kinds; StoreUnavailable is re-exported here so
callers can import every kind from one place.
"""
from fastapi import status
from typing import List, Optional
from ..exceptions import AppException, ResourceNotFoundException, StoreUnavailableException

class SchedulingException(AppException):
    """Base class for appointment scheduling exceptions."""
    code = "scheduling_error"


class InvalidInterval(SchedulingException):
    """Exception raised when an interval does not end after it starts."""
    code = "invalid_interval"

    def __init__(self, detail: str = "Appointment end time must be after its start time"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidArguments(SchedulingException):
    """Exception raised when an availability check receives malformed input."""
    code = "invalid_arguments"

    def __init__(self, detail: str = "Invalid availability query"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class MissingCancellationReason(SchedulingException):
    """Exception raised when cancelling without a reason."""
    code = "missing_cancellation_reason"

    def __init__(self, detail: str = "A cancellation reason is required"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class AlreadyCancelled(SchedulingException):
    """Exception raised on any transition out of a cancelled appointment."""
    code = "already_cancelled"

    def __init__(self, detail: str = "Appointment is already cancelled"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidStatusTransition(SchedulingException):
    """Exception raised when the state machine has no edge for the requested move."""
    code = "invalid_status_transition"

    def __init__(self, current: str, requested: str, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail or f"Cannot change appointment status from '{current}' to '{requested}'",
            extra={"current_status": current, "requested_status": requested}
        )


class PastAppointmentImmutable(SchedulingException):
    """Exception raised when a past appointment is moved back to pending or confirmed."""
    code = "past_appointment_immutable"

    def __init__(self, detail: str = "Past appointments can only be completed, cancelled or marked as no-show"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class SchedulingConflict(SchedulingException):
    """Exception raised when the doctor already has an active appointment in the slot."""
    code = "scheduling_conflict"

    def __init__(self, conflicting_ids: Optional[List[str]] = None,
                 detail: str = "Doctor already has an appointment in this time slot"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            extra={"conflicting_appointments": list(conflicting_ids or [])}
        )
        self.conflicting_ids = list(conflicting_ids or [])


class DeletionNotAllowed(SchedulingException):
    """Exception raised when deleting a past appointment that was not cancelled."""
    code = "deletion_not_allowed"

    def __init__(self, detail: str = "Only future or cancelled appointments can be deleted"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


NotFound = ResourceNotFoundException
StoreUnavailable = StoreUnavailableException


class ConcurrentUpdate(StoreUnavailableException):
    """
    Exception raised when an appointment changed between being loaded and being written.

    Operations reload the appointment and re-apply their guards when they see
    it; it only reaches the caller after repeated collisions, as a retryable
    StoreUnavailable.
    """
    code = "concurrent_update"

    def __init__(self, detail: str = "Appointment was modified concurrently"):
        super().__init__(detail=detail)
