"""
Performance Review - Review Coordinator.

============================================================
PURPOSE
============================================================
Turns a reviewer's decision into a terminal submission state,
and on approval, into a published stats record, as ONE atomic
unit.

============================================================
ATOMIC UNIT
============================================================
Inside a single transaction_scope:

1. Load the submission                     -> NotFoundError
2. Conditional UPDATE ... WHERE status =
   'PENDING'; 0 affected rows              -> ConflictError
3. On approve, upsert published stats for
   (subject, current window) in the same
   session

Any storage failure in 2, 3 or the commit rolls back the whole
unit and surfaces as TransactionAbortedError. The submission is
then still PENDING and no stats were written, so the caller may
retry the identical request.

The guard in step 2 is evaluated by the database, so it holds
across service instances without process-local locking.

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, ClockFactory
from core.exceptions import (
    ConflictError,
    NotFoundError,
    TransactionAbortedError,
    ValidationError,
)
from core.identity import Identity, ReviewerPolicy
from database.engine import DatabasePersistenceError, transaction_scope
from leaderboard.publisher import StatsPublisher, StatsRecord
from leaderboard.types import CURRENT_WINDOW, Exchange, ReviewDecision, SubmissionStatus
from storage.models.leaderboard import PublishedStats, Submission
from storage.repositories.exceptions import RepositoryException
from storage.repositories.submissions import SubmissionRepository

from .registry import parse_submission_id
from .schemas import MAX_REVIEW_NOTE_LENGTH
from .state_machine import ReviewTransition, TransitionGuard


logger = logging.getLogger(__name__)


@dataclass
class ReviewResult:
    """Outcome of a committed review."""
    transition: ReviewTransition
    submission: Submission
    published: Optional[PublishedStats] = None

    @property
    def status(self) -> SubmissionStatus:
        return self.transition.to_status

    @property
    def message(self) -> str:
        verb = "approved" if self.transition.decision is ReviewDecision.APPROVE else "rejected"
        return f"Submission {verb} successfully"


def parse_decision(value: Union[ReviewDecision, str]) -> ReviewDecision:
    try:
        return ReviewDecision(value)
    except ValueError:
        raise ValidationError.for_field("action", "Must be 'approve' or 'reject'")


class ReviewCoordinator:
    """Applies review decisions to pending submissions."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        policy: Optional[ReviewerPolicy] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self.session_factory = session_factory
        self.policy = policy
        self.clock = clock or ClockFactory.get_clock()

    def _validate(
        self,
        submission_id: Union[UUID, str],
        decision: Union[ReviewDecision, str],
        note: Optional[str],
    ):
        errors = []
        sid = decision_value = None
        try:
            sid = parse_submission_id(submission_id)
        except ValidationError as e:
            errors.extend(e.field_errors)
        try:
            decision_value = parse_decision(decision)
        except ValidationError as e:
            errors.extend(e.field_errors)
        if note is not None and len(note) > MAX_REVIEW_NOTE_LENGTH:
            errors.append({
                "field": "admin_note",
                "message": f"At most {MAX_REVIEW_NOTE_LENGTH} characters",
            })
        if errors:
            raise ValidationError("Invalid review data", field_errors=errors)
        return sid, decision_value

    def review(
        self,
        submission_id: Union[UUID, str],
        decision: Union[ReviewDecision, str],
        reviewer: Identity,
        note: Optional[str] = None,
    ) -> ReviewResult:
        """
        Approve or reject a pending submission.

        Raises:
            ForbiddenError: reviewer fails the policy check
            ValidationError: malformed id, decision or note
            NotFoundError: submission does not exist
            ConflictError: submission already reviewed
            TransactionAbortedError: nothing applied, safe to retry
        """
        if self.policy is not None:
            self.policy.ensure_reviewer(reviewer)

        sid, decision = self._validate(submission_id, decision, note)

        try:
            with transaction_scope(self.session_factory) as session:
                result = self._apply(session, sid, decision, reviewer, note)
        except (DatabasePersistenceError, RepositoryException) as e:
            logger.error(
                f"Review of {sid} aborted ({decision.value}): {e}",
                exc_info=True,
            )
            raise TransactionAbortedError(
                f"Review of submission {sid} could not be committed",
                context={"submission_id": str(sid), "decision": decision.value},
                cause=e,
            ) from e

        logger.info(
            f"Review committed: id={sid} subject={result.submission.subject_id} "
            f"decision={decision.value} by={reviewer.reviewer_label}"
        )
        return result

    def _apply(
        self,
        session: Session,
        sid: UUID,
        decision: ReviewDecision,
        reviewer: Identity,
        note: Optional[str],
    ) -> ReviewResult:
        repo = SubmissionRepository(session)

        submission = repo.get_submission(sid)
        if submission is None:
            raise NotFoundError("Submission", sid)

        current = submission.status_enum
        TransitionGuard.ensure_can_review(sid, current, decision)

        reviewed_at = self.clock.now()
        won = repo.mark_reviewed_if_pending(
            submission_id=sid,
            status=decision.target_status,
            reviewer_note=note,
            reviewed_by=reviewer.reviewer_label,
            reviewed_at=reviewed_at,
        )
        if not won:
            # Another reviewer committed between our read and our write
            logger.info(f"Lost review race for {sid}")
            raise ConflictError(context={"submission_id": str(sid)})

        published = None
        if decision is ReviewDecision.APPROVE:
            published = StatsPublisher(session, self.clock).publish(
                submission.subject_id,
                CURRENT_WINDOW,
                StatsRecord(
                    exchange=Exchange(submission.exchange),
                    monthly_pnl_pct=submission.monthly_pnl_pct,
                    total_pnl_usd=submission.total_pnl_usd,
                    win_rate_pct=submission.win_rate_pct,
                    volume_usd=submission.volume_usd,
                    submission_id=submission.id,
                ),
            )

        repo.refresh(submission)

        transition = ReviewTransition(
            submission_id=sid,
            from_status=current,
            to_status=decision.target_status,
            decision=decision,
            reviewed_by=reviewer.reviewer_label,
            reviewed_at=reviewed_at,
            note=note,
        )
        return ReviewResult(transition=transition, submission=submission, published=published)


__all__ = ["ReviewResult", "ReviewCoordinator", "parse_decision"]
