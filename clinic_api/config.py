"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        app_name: Title shown in the OpenAPI docs
        database_url: SQLAlchemy connection string (PostgreSQL in production)
        store_timeout_seconds: Upper bound for a single statement against the appointment store
        pool_timeout_seconds: How long to wait for a pooled connection before giving up
        log_level: Root logging level
        cors_origins: Origins allowed to call the API from a browser
    """
    app_name: str = "Clinic Scheduling API"

    # Database settings
    database_url: str = "sqlite:///./clinic.db"
    store_timeout_seconds: float = 5.0
    pool_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    # Frontend settings
    cors_origins: List[str] = ["http://localhost:3000"]

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
