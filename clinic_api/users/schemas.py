"""
User Schemas - Pydantic models for user data validation and serialization.
"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from .models import UserRole

class UserCreate(BaseModel):
    """
    User Creation Schema - Used when adding a doctor, patient or staff member

    Fields:
    - email: User's email address
    - full_name: User's full name
    - role: User role
    """
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.PATIENT

class UserResponse(BaseModel):
    """User Response Schema - Used when returning user data"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    full_name: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

class UserListResponse(BaseModel):
    """User List Response Schema"""
    users: List[UserResponse]
    total: int
