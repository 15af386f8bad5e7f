"""
User Model - Stores every person the clinic schedules for.

Doctors and patients are users distinguished by role; appointments reference
them by id.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the medical clinic system.

    Roles:
    - PATIENT: Patients who attend appointments
    - DOCTOR: Medical practitioners whose calendars are booked
    - STAFF: Administrative staff who manage appointments
    - ADMIN: System administrators with full access
    """
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    STAFF = "STAFF"
    ADMIN = "ADMIN"

class User(Base):
    """
    User Model - Stores user information

    Fields:
    - id: Primary key for user identification
    - email: Unique email address
    - full_name: User's complete name
    - role: User role (patient, doctor, staff, admin)
    - is_active: Inactive users cannot be booked
    - created_at: Timestamp when user was created
    - updated_at: Timestamp when user was last updated
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.PATIENT, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        """String representation of the User model"""
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
