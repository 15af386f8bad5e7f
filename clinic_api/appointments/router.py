"""
Appointment Router - API endpoints for booking and managing appointments.

Each scheduling error kind maps to its own status code and `code` field through
the application exception handler.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..core.clock import Clock, get_clock
from ..database import get_db
from .availability import find_conflicts
from .exceptions import InvalidArguments, InvalidInterval
from .interval import TimeInterval
from .models import Appointment, AppointmentStatus
from .schemas import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentListResponse,
    AvailabilityResponse,
)
from .service import (
    create_appointment,
    update_status,
    reschedule_appointment,
    delete_appointment,
    get_appointment,
    list_appointments,
)
from .store import AppointmentStore

router = APIRouter()

def to_response(appointment: Appointment) -> AppointmentResponse:
    """Serialize an appointment with its interval in aware UTC"""
    interval = appointment.interval
    return AppointmentResponse.model_validate(appointment).model_copy(
        update={"start_time": interval.start, "end_time": interval.end}
    )

@router.post("/", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment_route(
    appointment_data: AppointmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Book an appointment.

    The doctor must have no pending or confirmed appointment overlapping the
    requested interval, and the interval must start in the future.
    """
    appointment = create_appointment(
        db,
        doctor_id=appointment_data.doctor_id,
        patient_id=appointment_data.patient_id,
        interval=TimeInterval(appointment_data.start_time, appointment_data.end_time),
        reason=appointment_data.reason,
        created_by=appointment_data.created_by,
        now=clock()
    )
    return to_response(appointment)

@router.get("/", response_model=AppointmentListResponse)
async def list_appointments_route(
    doctor_id: Optional[int] = Query(None, description="Only this doctor's appointments"),
    patient_id: Optional[int] = Query(None, description="Only this patient's appointments"),
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status", description="Filter by status"),
    start: Optional[datetime] = Query(None, description="Window start (requires end)"),
    end: Optional[datetime] = Query(None, description="Window end (requires start)"),
    db: Session = Depends(get_db)
):
    """
    List appointments with doctor and patient names, ordered by start time.
    """
    appointments = list_appointments(db, doctor_id, patient_id, appointment_status, start, end)
    return AppointmentListResponse(
        appointments=[to_response(appointment) for appointment in appointments],
        total=len(appointments)
    )

@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability_route(
    doctor_id: int = Query(..., description="Doctor to check"),
    start: datetime = Query(..., description="Candidate interval start"),
    end: datetime = Query(..., description="Candidate interval end (exclusive)"),
    exclude_appointment_id: Optional[str] = Query(None, description="Appointment to ignore when rescheduling"),
    db: Session = Depends(get_db)
):
    """
    Check whether a doctor is free for a candidate interval.
    """
    try:
        interval = TimeInterval(start, end)
    except InvalidInterval as e:
        raise InvalidArguments(e.detail) from e
    conflicts = find_conflicts(AppointmentStore(db), doctor_id, interval, exclude_appointment_id)
    return AvailabilityResponse(
        doctor_id=doctor_id,
        start_time=interval.start,
        end_time=interval.end,
        available=not conflicts,
        conflicts=[appointment.id for appointment in conflicts]
    )

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment_route(appointment_id: str, db: Session = Depends(get_db)):
    """
    Get a single appointment.
    """
    return to_response(get_appointment(db, appointment_id))

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status_route(
    appointment_id: str,
    status_data: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Confirm, complete, cancel or mark an appointment as no-show.
    """
    appointment = update_status(
        db,
        appointment_id,
        status_data.status,
        status_data.cancellation_reason,
        status_data.updated_by,
        now=clock()
    )
    return to_response(appointment)

@router.patch("/{appointment_id}/schedule", response_model=AppointmentResponse)
async def reschedule_appointment_route(
    appointment_id: str,
    schedule_data: AppointmentReschedule,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Move an appointment to a new interval, optionally with a different doctor.
    """
    appointment = reschedule_appointment(
        db,
        appointment_id,
        TimeInterval(schedule_data.start_time, schedule_data.end_time),
        schedule_data.updated_by,
        now=clock(),
        doctor_id=schedule_data.doctor_id
    )
    return to_response(appointment)

@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment_route(
    appointment_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Delete a future or cancelled appointment. Past records are kept.
    """
    delete_appointment(db, appointment_id, now=clock())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
