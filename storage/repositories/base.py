"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for all repositories including:
- Error handling wrappers
- Common query operations
- Logging setup

Session is injected via constructor; repositories never
commit. The caller owns the transaction boundary.

============================================================
"""

import logging
from abc import ABC
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select, func
from sqlalchemy.exc import (
    IntegrityError as SQLAlchemyIntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    QueryError,
    RecordNotFoundError,
)


T = TypeVar("T", bound=Base)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base class for all repositories.

    Usage:
        class MyRepository(BaseRepository[MyModel]):
            def __init__(self, session: Session):
                super().__init__(session, MyModel, "MyRepository")
    """

    def __init__(
        self,
        session: Session,
        model_class: Type[T],
        repository_name: str
    ) -> None:
        self._session = session
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def session(self) -> Session:
        return self._session

    @property
    def repository_name(self) -> str:
        return self._repository_name

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    def _handle_db_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> None:
        """
        Wrap a database error in a repository exception.

        Raises:
            RepositoryException: Always raises appropriate exception
        """
        context = context or {}
        self._logger.error(
            f"Database error in {operation}: {error}",
            extra={"context": context},
            exc_info=True
        )

        if isinstance(error, OperationalError):
            raise ConnectionError(
                repository_name=self._repository_name,
                operation=operation,
                original_error=str(error.orig if error.orig else error)
            ) from error

        if isinstance(error, SQLAlchemyIntegrityError):
            error_str = str(error).lower()
            if "duplicate" in error_str or "unique" in error_str:
                raise DuplicateRecordError(
                    repository_name=self._repository_name,
                    operation=operation,
                    original_error=str(error.orig if error.orig else error)
                ) from error

            raise IntegrityError(
                repository_name=self._repository_name,
                operation=operation,
                message=str(error.orig if error.orig else error)
            ) from error

        raise QueryError(
            repository_name=self._repository_name,
            operation=operation,
            original_error=str(error)
        ) from error

    def _add(self, entity: T) -> T:
        """Add an entity to the session and flush it."""
        try:
            self._session.add(entity)
            self._session.flush()
            self._logger.debug(f"Added entity: {entity}")
            return entity
        except SQLAlchemyError as e:
            self._handle_db_error(e, "add", {"entity": str(entity)})
            raise  # Never reached, but satisfies type checker

    def _get_by_id(self, record_id: Any) -> Optional[T]:
        try:
            return self._session.get(self._model_class, record_id)
        except SQLAlchemyError as e:
            self._handle_db_error(e, "get_by_id", {"id": str(record_id)})
            raise

    def _get_by_id_or_raise(self, record_id: Any, id_field: str = "id") -> T:
        """
        Get an entity by its primary key, raising if not found.

        Raises:
            RecordNotFoundError: If entity does not exist
        """
        entity = self._get_by_id(record_id)
        if entity is None:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                record_id=record_id,
                id_field=id_field
            )
        return entity

    def _count(self, *conditions: Any) -> int:
        """Count entities matching all conditions."""
        try:
            stmt = select(func.count()).select_from(self._model_class)
            if conditions:
                stmt = stmt.where(*conditions)
            return self._session.execute(stmt).scalar() or 0
        except SQLAlchemyError as e:
            self._handle_db_error(e, "count")
            raise

    def _execute_query(self, stmt: Any) -> List[T]:
        """Execute a select statement and return entities."""
        try:
            result = self._session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._handle_db_error(e, "query")
            raise

    def _execute_scalar(self, stmt: Any) -> Optional[T]:
        """Execute a select statement and return a single entity or None."""
        try:
            result = self._session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "query_scalar")
            raise

    def _execute_write(self, stmt: Any, operation: str) -> int:
        """Execute an insert/update statement and return affected rows."""
        try:
            result = self._session.execute(stmt)
            return result.rowcount
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation)
            raise
