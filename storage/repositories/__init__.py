"""Data access layer for submissions and published stats."""

from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    QueryError,
    RecordNotFoundError,
    RepositoryException,
)
from storage.repositories.published_stats import PublishedStatsRepository, WindowSummary
from storage.repositories.submissions import SubmissionRepository

__all__ = [
    "ConnectionError",
    "DuplicateRecordError",
    "IntegrityError",
    "QueryError",
    "RecordNotFoundError",
    "RepositoryException",
    "PublishedStatsRepository",
    "WindowSummary",
    "SubmissionRepository",
]
