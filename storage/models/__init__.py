"""ORM models for the leaderboard service."""

from storage.models.base import Base, TimestampMixin
from storage.models.leaderboard import PublishedStats, Submission

__all__ = [
    "Base",
    "TimestampMixin",
    "PublishedStats",
    "Submission",
]
