"""
Performance Review - Submission State Machine.

============================================================
PURPOSE
============================================================
Transition rules for a submission's review status.

STATE MACHINE:

        PENDING
        │     │
        ▼     ▼
   APPROVED  REJECTED

INVARIANTS:
- APPROVED and REJECTED are terminal
- A submission changes status exactly once
- The in-database guard (status still PENDING at UPDATE time)
  is authoritative; this module is the in-process statement of
  the same rule

============================================================
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Set, Tuple
from uuid import UUID

from core.exceptions import ConflictError
from leaderboard.types import ReviewDecision, SubmissionStatus


logger = logging.getLogger(__name__)


VALID_TRANSITIONS: Dict[SubmissionStatus, Set[SubmissionStatus]] = {
    SubmissionStatus.PENDING: {
        SubmissionStatus.APPROVED,
        SubmissionStatus.REJECTED,
    },
    # Terminal states - no transitions out
    SubmissionStatus.APPROVED: set(),
    SubmissionStatus.REJECTED: set(),
}


@dataclass(frozen=True)
class ReviewTransition:
    """A completed status change."""
    submission_id: UUID
    from_status: SubmissionStatus
    to_status: SubmissionStatus
    decision: ReviewDecision
    reviewed_by: str
    reviewed_at: datetime
    note: Optional[str] = None


class TransitionGuard:
    """Checks whether a status change is allowed."""

    @staticmethod
    def can_transition(
        from_status: SubmissionStatus,
        to_status: SubmissionStatus,
    ) -> Tuple[bool, str]:
        """
        Returns:
            Tuple of (allowed, reason)
        """
        if to_status in VALID_TRANSITIONS.get(from_status, set()):
            return True, "Valid transition"

        if from_status.is_terminal():
            return False, f"Cannot transition from terminal state {from_status.value}"

        return False, f"Invalid transition: {from_status.value} -> {to_status.value}"

    @staticmethod
    def ensure_can_review(submission_id: UUID, current: SubmissionStatus, decision: ReviewDecision) -> None:
        """
        Raises:
            ConflictError: submission is no longer pending
        """
        allowed, reason = TransitionGuard.can_transition(current, decision.target_status)
        if not allowed:
            logger.info(f"Review refused for {submission_id}: {reason}")
            raise ConflictError(
                context={"submission_id": str(submission_id), "status": current.value}
            )


__all__ = [
    "VALID_TRANSITIONS",
    "ReviewTransition",
    "TransitionGuard",
]
