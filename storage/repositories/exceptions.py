"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Repositories catch SQLAlchemy/driver exceptions and re-raise
them as repository exceptions with context. Service layers
catch these; driver exceptions never cross the repository
boundary.

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository operations.

    Business layers can catch this for generic storage failure
    handling.
    """

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[dict] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"[{self.repository_name}] {self.operation}: {self.message}"


class RecordNotFoundError(RepositoryException):
    """Raised when a record expected to exist cannot be found."""

    def __init__(
        self,
        repository_name: str,
        record_id: Any,
        id_field: str = "id"
    ) -> None:
        super().__init__(
            message=f"Record with {id_field}={record_id} not found",
            repository_name=repository_name,
            operation="get",
            details={id_field: str(record_id)}
        )
        self.record_id = record_id
        self.id_field = id_field


class DuplicateRecordError(RepositoryException):
    """
    Raised when a unique constraint rejects a write.

    For published stats this means a concurrent publisher created
    the (subject, window) row first.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Duplicate record: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class IntegrityError(RepositoryException):
    """Raised for foreign key and check constraint violations."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        message: str
    ) -> None:
        super().__init__(
            message=f"Integrity constraint violated: {message}",
            repository_name=repository_name,
            operation=operation,
        )


class ConnectionError(RepositoryException):
    """Raised for connection timeouts, lock timeouts, pool exhaustion."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Database connection failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class QueryError(RepositoryException):
    """Raised when a statement fails for any other reason."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Query failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )
