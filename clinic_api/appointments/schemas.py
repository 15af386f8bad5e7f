"""
Appointment Schemas - Pydantic models for appointment requests and responses.
"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from .models import AppointmentStatus, REASON_MAX_LENGTH

class AppointmentCreate(BaseModel):
    """
    Appointment Creation Schema - Used when booking an appointment

    Fields:
    - doctor_id: Doctor to book
    - patient_id: Patient attending
    - start_time / end_time: Requested interval, end exclusive
    - reason: Reason for the visit (optional)
    - created_by: User making the booking
    """
    doctor_id: int
    patient_id: int
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = Field(None, max_length=REASON_MAX_LENGTH)
    created_by: int

class AppointmentStatusUpdate(BaseModel):
    """
    Status Update Schema

    Fields:
    - status: Requested status
    - cancellation_reason: Required when status is cancelled
    - updated_by: User making the change
    """
    status: AppointmentStatus
    cancellation_reason: Optional[str] = Field(None, max_length=REASON_MAX_LENGTH)
    updated_by: int

class AppointmentReschedule(BaseModel):
    """Reschedule Schema - new interval and, optionally, a different doctor"""
    start_time: datetime
    end_time: datetime
    doctor_id: Optional[int] = None
    updated_by: int

class AppointmentResponse(BaseModel):
    """Appointment Response Schema - Used when returning appointment data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    doctor_id: int
    patient_id: int
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    status: AppointmentStatus
    reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class AppointmentListResponse(BaseModel):
    """Appointment List Response Schema"""
    appointments: List[AppointmentResponse]
    total: int

class AvailabilityResponse(BaseModel):
    """
    Availability Response Schema

    Fields:
    - doctor_id: Doctor that was checked
    - start_time / end_time: Candidate interval
    - available: True if no active appointment overlaps the interval
    - conflicts: IDs of the overlapping active appointments
    """
    doctor_id: int
    start_time: datetime
    end_time: datetime
    available: bool
    conflicts: List[str] = []
