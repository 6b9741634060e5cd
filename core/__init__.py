"""
Core Module Package.

Infrastructure shared by every other package.

Components:
- clock: Injectable time source
- exceptions: Error taxonomy and HTTP status hints
- identity: Identity resolution and reviewer policy interfaces
"""

from .clock import ClockFactory, ClockProtocol, MockClock, SystemClock, now_utc
from .exceptions import (
    ConflictError,
    ErrorClassification,
    ForbiddenError,
    LeaderboardError,
    NotFoundError,
    TransactionAbortedError,
    UnauthorizedError,
    ValidationError,
)
from .identity import (
    AdminAllowListPolicy,
    Identity,
    IdentityResolver,
    InMemoryIdentityResolver,
    ReviewerPolicy,
)

__all__ = [
    "ClockFactory",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "now_utc",
    "ConflictError",
    "ErrorClassification",
    "ForbiddenError",
    "LeaderboardError",
    "NotFoundError",
    "TransactionAbortedError",
    "UnauthorizedError",
    "ValidationError",
    "AdminAllowListPolicy",
    "Identity",
    "IdentityResolver",
    "InMemoryIdentityResolver",
    "ReviewerPolicy",
]
