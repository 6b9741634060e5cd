"""
Database Persistence Layer - Core Engine.

============================================================
DATABASE ENGINE AND TRANSACTION BOUNDARIES
============================================================

Owns the SQLAlchemy engine, the session factory and the
explicit transaction scope used by the review pipeline.

Requirements:
- SQLAlchemy ORM, PostgreSQL in production
- SQLite supported for local development and tests
- Explicit transaction management (commit or rollback, never both)
- Hard failures on persistence errors

============================================================
"""

import logging
from typing import Callable, Generator, Optional
from contextlib import contextmanager

from sqlalchemy import create_engine, text, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.pool import StaticPool

from core.exceptions import LeaderboardError
from storage.models.base import Base

logger = logging.getLogger(__name__)


# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def _redact(url: str) -> str:
    return url.split("@")[-1]


def create_database_engine(
    database_url: str,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine with connection pooling.

    In-memory SQLite gets a single shared connection so every
    session sees the same database.

    Args:
        database_url: SQLAlchemy URL
        pool_size: Number of connections to keep in pool
        max_overflow: Max connections beyond pool_size
        pool_timeout: Seconds to wait for available connection
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    logger.info(f"Creating database engine for: {_redact(database_url)}")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
    else:
        engine = create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
            echo=echo,
        )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def configure_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the process-wide engine and session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = create_database_engine(database_url, echo=echo)
    _SessionFactory = sessionmaker(
        bind=_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    return _engine


def get_engine() -> Engine:
    """Get the database engine, creating it from configuration if necessary."""
    if _engine is None:
        from leaderboard.config import get_config

        config = get_config()
        configure_engine(config.database_url, echo=config.db_echo)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    if _SessionFactory is None:
        get_engine()
    return _SessionFactory


def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for committing/closing.
    Prefer get_db_session() or transaction_scope().
    """
    factory = get_session_factory()
    return factory()


@contextmanager
def get_db_session(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Rolls back on any exception and re-raises it unchanged.
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
    except Exception as e:
        logger.debug(f"Rolling back session after {type(e).__name__}")
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def transaction_scope(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for an explicit transaction boundary.

    Commits only if the block finishes without an exception.
    Rolls back on ANY exception. Domain errors propagate as they
    are; storage failures (including a failed commit) surface as
    DatabasePersistenceError.

    Usage:
        with transaction_scope(factory) as session:
            guarded_status_update(session, ...)
            upsert_published_stats(session, ...)
            # Commits automatically at end
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except LeaderboardError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise DatabasePersistenceError(f"Transaction failed: {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify database connection is working.

    Raises:
        DatabaseConnectionError if connection fails
    """
    engine = engine or get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


def create_all_tables(engine: Optional[Engine] = None) -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError if table creation fails
    """
    engine = engine or get_engine()

    # Register models with Base
    from storage.models import leaderboard  # noqa: F401

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def initialize_database(engine: Optional[Engine] = None) -> None:
    """
    Full database initialization sequence.

    1. Verify connection
    2. Create tables if not exist
    """
    logger.info("Initializing database persistence layer")
    try:
        verify_database_connection(engine)
        create_all_tables(engine)
    except DatabasePersistenceError as e:
        logger.critical(f"DATABASE INITIALIZATION FAILED: {e}")
        raise
    logger.info("Database initialization complete")


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


__all__ = [
    "create_database_engine",
    "configure_engine",
    "get_engine",
    "get_session",
    "get_db_session",
    "get_session_factory",
    "dispose_engine",
    "transaction_scope",
    "initialize_database",
    "verify_database_connection",
    "create_all_tables",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
