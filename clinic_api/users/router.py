"""
User Router - API endpoints for the doctor and patient directory.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from .models import UserRole
from .schemas import UserCreate, UserResponse, UserListResponse
from .service import create_user, delete_user, get_user, list_users

router = APIRouter()

@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user_route(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Add a doctor, patient or staff member to the directory.
    """
    return create_user(db, user_data.email, user_data.full_name, user_data.role)

@router.get("/", response_model=UserListResponse)
async def list_users_route(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    db: Session = Depends(get_db)
):
    """
    List users, e.g. every doctor for a booking form.
    """
    users = list_users(db, role)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=len(users)
    )

@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(user_id: int, db: Session = Depends(get_db)):
    """
    Get a single user.
    """
    return get_user(db, user_id)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_route(
    user_id: int,
    role: Optional[UserRole] = Query(None, description="Only delete if the user holds this role"),
    db: Session = Depends(get_db)
):
    """
    Remove a doctor or patient who has no appointments on record.
    """
    delete_user(db, user_id, role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
