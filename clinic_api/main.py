"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
import logging
from .config import settings
from .database import Base, engine, get_db
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .users.router import router as users_router
from .appointments.router import router as appointments_router
# Import all models so create_all sees every table
from .users import models as user_models  # noqa: F401
from .appointments import models as appointment_models  # noqa: F401

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

logger.info("🚀 Starting Clinic Scheduling API...")

# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Doctor and patient directory with conflict-free appointment scheduling",
    version="1.0.0"
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(users_router, prefix="/api/v1/users", tags=["Users"])
app.include_router(appointments_router, prefix="/api/v1/appointments", tags=["Appointments"])

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Welcome message and API version
    """
    return {"message": "Welcome to Clinic Scheduling API", "version": app.version}

# Health check endpoint
@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Health check database query failed: {str(e)}")
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "healthy", "database": "connected"}
