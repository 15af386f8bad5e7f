"""
Database connection and session management.
Provides SQLAlchemy engine, session, and base class for models.
"""
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings
from .exceptions import StoreUnavailableException

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    """
    Driver-level options that bound how long a single statement may block.

    SQLite waits on its file lock for `timeout` seconds; PostgreSQL aborts any
    statement running past `statement_timeout` milliseconds.
    """
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.store_timeout_seconds}
    if database_url.startswith("postgresql"):
        timeout_ms = int(settings.store_timeout_seconds * 1000)
        return {"options": f"-c statement_timeout={timeout_ms}"}
    return {}


def build_engine(database_url: str):
    """
    Create a SQLAlchemy engine with the configured store timeouts.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        Engine: configured engine
    """
    options = {"connect_args": _connect_args(database_url), "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options["pool_timeout"] = settings.pool_timeout_seconds
    return create_engine(database_url, **options)


# Create SQLAlchemy engine for database connection
engine = build_engine(settings.database_url)

# Create session factory for database sessions
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Create base class for declarative models
Base = declarative_base()

def get_db():
    """
    Database dependency - Creates and yields a database session.

    The session is automatically closed after the request is processed,
    even if an exception occurs during request handling.

    Yields:
        SQLAlchemy Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def store_guard(db, operation: str):
    """
    Run database work on `db`, rolling back on any failure.

    Statement timeouts, lost connections and an exhausted connection pool are
    raised as StoreUnavailableException so callers can retry.

    Args:
        db: Database session
        operation: Short name of the work, used in the error log
    """
    try:
        yield
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        logger.error(f"Database {operation} failed: {str(e)}")
        raise StoreUnavailableException() from e
    except Exception:
        db.rollback()
        raise
