from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
import logging

from retail_dashboard.config.settings import settings
from retail_dashboard.utils.retry_helper import with_retry, RetryError

# Set up logging
logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """
    Create the SQLAlchemy engine for the given URL

    SQLite URLs get a thread-agnostic connection; in-memory SQLite shares a
    single connection so every session sees the same data.
    """
    if database_url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url:
            engine_kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **engine_kwargs)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before usage
        pool_recycle=3600,   # Recycle connections after 1 hour
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


engine = build_engine(settings.database_url, echo=settings.SQL_ECHO)

# Create a thread-local session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
ScopedSession = scoped_session(SessionLocal)

# Base class for models
Base = declarative_base()


@contextmanager
def get_db_session():
    """Provide a transactional scope around a series of operations."""
    session = ScopedSession()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database transaction error: {str(e)}")
        raise
    finally:
        session.close()
        ScopedSession.remove()


def init_db():
    """Create any missing tables for the registered models."""
    # Import models so they register with Base.metadata
    from retail_dashboard.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified")


@with_retry(
    max_attempts=settings.DB_RETRY_ATTEMPTS,
    retry_delay=settings.DB_RETRY_DELAY,
    exceptions_to_retry=(OperationalError,),
)
def ping_database():
    """Run a trivial query against the store, retrying on connection errors."""
    with get_db_session() as session:
        session.execute(text("SELECT 1"))


def check_database_connection() -> bool:
    """
    Check if database connection works

    Returns:
        bool: True if connection is working
    """
    try:
        ping_database()
        return True
    except (RetryError, SQLAlchemyError) as e:
        logger.error(f"Database connection check failed: {str(e.__cause__ or e)}")
        return False
