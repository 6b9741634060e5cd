"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the error taxonomy shared by the review pipeline, the
stats publisher and the ranking read path.

- Every error carries a message and a debugging context
- Every error states whether the caller may retry unchanged
- Every error maps to one HTTP status at the API boundary
- Storage internals never appear in ``public_message``

============================================================
EXCEPTION HIERARCHY
============================================================
LeaderboardError (base)
├── ValidationError          400  malformed / out-of-range input
├── UnauthorizedError        401  identity could not be resolved
├── ForbiddenError           403  identity is not a reviewer
├── NotFoundError            404  referenced record absent
├── ConflictError            409  submission already reviewed
└── TransactionAbortedError  503  atomic unit could not commit

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Who caused the error and whether a retry can help."""

    CLIENT = "client"
    """Caller must change the request before retrying."""

    STALE = "stale"
    """Caller's view of the record was out of date."""

    TRANSIENT = "transient"
    """Temporary failure, the same request may succeed."""

    INTERNAL = "internal"
    """Unexpected failure inside the service."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class LeaderboardError(Exception):
    """
    Base exception for all leaderboard service errors.

    Subclasses set ``status_code``, ``error_code`` and the
    classification; instances carry message and context.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_classification: ErrorClassification = ErrorClassification.INTERNAL

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.classification = self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__

    @property
    def retryable(self) -> bool:
        """Whether the identical request may succeed on retry."""
        return self.classification == ErrorClassification.TRANSIENT

    @property
    def public_message(self) -> str:
        """Message safe to return to the caller."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "type": type(self).__name__,
            "code": self.error_code,
            "message": self.message,
            "classification": self.classification.value,
            "retryable": self.retryable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# ============================================================
# CLIENT ERRORS
# ============================================================

class ValidationError(LeaderboardError):
    """
    Input failed validation.

    Lists every offending field, never just the first one.
    """

    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_classification = ErrorClassification.CLIENT

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.field_errors = field_errors or []
        self.context["fields"] = [e["field"] for e in self.field_errors]

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(
            f"Invalid value for {field}",
            field_errors=[{"field": field, "message": message}],
        )

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.field_errors]


class NotFoundError(LeaderboardError):
    """Referenced record does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"
    default_classification = ErrorClassification.CLIENT

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found",
            context={"resource": resource, "id": str(identifier)},
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(LeaderboardError):
    """Submission already left the pending state."""

    status_code = 409
    error_code = "CONFLICT"
    default_classification = ErrorClassification.STALE

    def __init__(self, message: str = "Submission already reviewed", **kwargs):
        super().__init__(message, **kwargs)


class TransactionAbortedError(LeaderboardError):
    """
    The approve-and-publish unit could not be committed.

    Nothing was applied; the pending guard makes a retry safe.
    """

    status_code = 503
    error_code = "TRANSACTION_ABORTED"
    default_classification = ErrorClassification.TRANSIENT

    @property
    def public_message(self) -> str:
        return "Failed to review submission. Please try again."


# ============================================================
# AUTHENTICATION / AUTHORIZATION
# ============================================================

class UnauthorizedError(LeaderboardError):
    """No valid identity for the request."""

    status_code = 401
    error_code = "UNAUTHORIZED"
    default_classification = ErrorClassification.CLIENT

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class ForbiddenError(LeaderboardError):
    """Identity is known but lacks the required role."""

    status_code = 403
    error_code = "FORBIDDEN"
    default_classification = ErrorClassification.CLIENT

    def __init__(self, message: str = "Forbidden - Admin access required", **kwargs):
        super().__init__(message, **kwargs)


__all__ = [
    "ErrorClassification",
    "LeaderboardError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TransactionAbortedError",
    "UnauthorizedError",
    "ForbiddenError",
]
