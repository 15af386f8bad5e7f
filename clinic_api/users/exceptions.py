"""
User directory exceptions.
"""
from typing import Optional
from fastapi import status
from ..exceptions import AppException

class EmailAlreadyExistsException(AppException):
    """Exception raised when email already exists."""
    code = "email_already_exists"

    def __init__(self, detail: str = "Email already registered"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UserHasAppointmentsException(AppException):
    """Exception raised when deleting a user that appointments still reference."""
    code = "user_has_appointments"

    def __init__(self, appointment_count: Optional[int] = None):
        detail = "User is referenced by existing appointments"
        if appointment_count:
            detail = f"User is referenced by {appointment_count} existing appointments"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
