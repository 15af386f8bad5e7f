"""
User Service - Identity directory for the scheduling core.

Answers "does this user exist and hold this role" for appointment creation,
and provides the small amount of user management the admin dashboard needs.
Every query runs under `store_guard`, so a database timeout surfaces as a
retryable StoreUnavailableException.
"""
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from ..database import store_guard
from ..exceptions import ResourceNotFoundException
from ..appointments.models import Appointment
from .exceptions import EmailAlreadyExistsException, UserHasAppointmentsException
from .models import User, UserRole

# Set up logging
logger = logging.getLogger(__name__)

def user_exists(db: Session, user_id: Optional[int], role: Optional[UserRole] = None) -> bool:
    """
    Check that a user exists, is active and, if given, holds the role.

    Args:
        db: Database session
        user_id: ID of the user
        role: Role the user must hold (any role if None)

    Returns:
        bool: True if the user can act in that role

    Raises:
        StoreUnavailableException: On database timeout
    """
    if user_id is None:
        return False
    with store_guard(db, "user lookup"):
        query = db.query(User).filter(User.id == user_id, User.is_active.is_(True))
        if role is not None:
            query = query.filter(User.role == role)
        return query.first() is not None

def get_user(db: Session, user_id: int, role: Optional[UserRole] = None) -> User:
    """
    Get a user by ID, optionally requiring a role.

    Raises:
        ResourceNotFoundException: If user not found
        StoreUnavailableException: On database timeout
    """
    with store_guard(db, "user lookup"):
        query = db.query(User).filter(User.id == user_id)
        if role is not None:
            query = query.filter(User.role == role)
        user = query.first()
    if not user:
        raise ResourceNotFoundException(f"{role.value.title() if role else 'User'} not found")
    return user

def create_user(db: Session, email: str, full_name: str, role: UserRole) -> User:
    """
    Create a user.

    Args:
        db: Database session
        email: User's email address
        full_name: User's full name
        role: User role

    Returns:
        User: Created user

    Raises:
        EmailAlreadyExistsException: If email already exists
        StoreUnavailableException: On database timeout
    """
    with store_guard(db, "user lookup"):
        existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        logger.warning(f"User creation failed: Email {email} already registered")
        raise EmailAlreadyExistsException()

    user = User(email=email, full_name=full_name, role=role, is_active=True)
    with store_guard(db, "user insert"):
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"User creation failed: Email {email} registered concurrently")
            raise EmailAlreadyExistsException()
        db.refresh(user)
    logger.info(f"User {user.id} created with role {role.value}")
    return user

def list_users(db: Session, role: Optional[UserRole] = None) -> List[User]:
    """
    List users, optionally filtered by role.

    Args:
        db: Database session
        role: Only return users holding this role

    Returns:
        List[User]: Users ordered by name
    """
    with store_guard(db, "user list"):
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.full_name).all()

def delete_user(db: Session, user_id: int, role: Optional[UserRole] = None) -> None:
    """
    Remove a user from the directory.

    Doctors and patients that appear on any appointment are kept: appointment
    history references them and the foreign keys restrict their deletion.
    Cancel and delete those appointments first.

    Args:
        db: Database session
        user_id: ID of the user
        role: Role the user must hold (any role if None)

    Raises:
        ResourceNotFoundException: If user not found
        UserHasAppointmentsException: If appointments still reference the user
        StoreUnavailableException: On database timeout
    """
    user = get_user(db, user_id, role)
    with store_guard(db, "user delete"):
        booked = db.query(Appointment.id).filter(
            or_(Appointment.doctor_id == user_id, Appointment.patient_id == user_id)
        ).count()
        if booked:
            logger.warning(f"Deletion of user {user_id} rejected: {booked} appointments reference it")
            raise UserHasAppointmentsException(booked)
        db.delete(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Deletion of user {user_id} rejected: booked concurrently")
            raise UserHasAppointmentsException()
    logger.info(f"User {user_id} deleted")
