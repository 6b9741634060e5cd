"""
Database Package Initialization.

============================================================
DATABASE PERSISTENCE LAYER
============================================================

Engine, session and transaction management for the
submission and published-stats tables.

REQUIRED:
- Every write happens inside an explicit transaction
- Every failure raises, nothing is swallowed
- ORM models live in storage.models

============================================================
"""

from .engine import (
    # Engine creation
    create_database_engine,
    configure_engine,
    get_engine,
    dispose_engine,

    # Session management
    get_session,
    get_session_factory,
    get_db_session,
    transaction_scope,

    # Database initialization
    initialize_database,
    verify_database_connection,
    create_all_tables,

    # Exceptions
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)

__all__ = [
    "create_database_engine",
    "configure_engine",
    "get_engine",
    "dispose_engine",
    "get_session",
    "get_session_factory",
    "get_db_session",
    "transaction_scope",
    "initialize_database",
    "verify_database_connection",
    "create_all_tables",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
