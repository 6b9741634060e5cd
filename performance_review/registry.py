"""
Performance Review - Submission Registry.

Owns submission records and their lifecycle state. Creation and
reads only; the single status mutation belongs to the Review
Coordinator and goes through SubmissionRepository directly.

The registry flushes but never commits. Callers own the
transaction boundary.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, ClockFactory
from core.exceptions import NotFoundError, ValidationError
from leaderboard.types import SubmissionStatus
from storage.models.leaderboard import Submission
from storage.repositories.submissions import SubmissionRepository

from .schemas import SubmissionCreate, field_errors


logger = logging.getLogger(__name__)


def parse_submission_id(value: Union[UUID, str]) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError.for_field("submission_id", "Must be a valid UUID")


class SubmissionRegistry:
    """Create and read performance submissions."""

    def __init__(self, session: Session, clock: Optional[ClockProtocol] = None):
        self.session = session
        self.clock = clock or ClockFactory.get_clock()
        self._repo = SubmissionRepository(session)

    def validate(self, payload: Union[SubmissionCreate, Mapping[str, Any]]) -> SubmissionCreate:
        """
        Check payload shape and ranges.

        Raises:
            ValidationError: listing every offending field
        """
        if isinstance(payload, SubmissionCreate):
            return payload
        try:
            return SubmissionCreate.model_validate(dict(payload))
        except PydanticValidationError as e:
            errors = field_errors(e)
            logger.info(f"Rejected submission payload: fields={[f['field'] for f in errors]}")
            raise ValidationError("Invalid submission data", field_errors=errors)

    def create(
        self,
        subject_id: str,
        payload: Union[SubmissionCreate, Mapping[str, Any]],
    ) -> Submission:
        """Validate and store a new PENDING submission."""
        data = self.validate(payload)

        submission = self._repo.create_submission(
            subject_id=subject_id,
            exchange=data.exchange.value,
            monthly_pnl_pct=data.monthly_pnl_pct,
            total_pnl_usd=data.total_pnl_usd,
            win_rate_pct=data.win_rate_pct,
            volume_usd=data.volume_usd,
            proof_text=data.proof_text,
            proof_links=data.proof_links,
            created_at=self.clock.now(),
        )

        logger.info(
            f"Created submission: id={submission.id} subject={subject_id} "
            f"exchange={data.exchange.value}"
        )
        return submission

    def get(self, submission_id: Union[UUID, str]) -> Submission:
        """
        Raises:
            NotFoundError: no submission with this id
        """
        sid = parse_submission_id(submission_id)
        submission = self._repo.get_submission(sid)
        if submission is None:
            raise NotFoundError("Submission", sid)
        return submission

    def list_by_subject(self, subject_id: str, limit: Optional[int] = None) -> List[Submission]:
        return self._repo.list_by_subject(subject_id, limit=limit)

    def list_pending(self, limit: Optional[int] = None) -> List[Submission]:
        """Reviewer queue, newest first."""
        return self._repo.list_by_status(SubmissionStatus.PENDING, limit=limit)

    def count_by_status(self) -> Dict[SubmissionStatus, int]:
        return self._repo.count_by_status()

    def has_pending(self, subject_id: str) -> bool:
        return self._repo.exists_for_subject(subject_id, SubmissionStatus.PENDING)


__all__ = ["SubmissionRegistry", "parse_submission_id"]
