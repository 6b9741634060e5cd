"""
Submission Repository.

============================================================
PURPOSE
============================================================
Data access for the submissions collection.

============================================================
DATA LIFECYCLE
============================================================
- Figures: IMMUTABLE after insert
- Review columns: written exactly once by
  ``mark_reviewed_if_pending``, a conditional UPDATE whose
  WHERE clause re-checks PENDING. The affected-row count is
  the guard: 1 means this caller won, 0 means the row was
  already reviewed (or never existed).

============================================================
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, desc, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leaderboard.types import SubmissionStatus
from storage.models.leaderboard import Submission
from storage.repositories.base import BaseRepository


class SubmissionRepository(BaseRepository[Submission]):
    """Repository for performance submissions."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, Submission, "SubmissionRepository")

    # =========================================================
    # WRITE OPERATIONS
    # =========================================================

    def create_submission(
        self,
        subject_id: str,
        exchange: str,
        monthly_pnl_pct: float,
        total_pnl_usd: float,
        win_rate_pct: float,
        volume_usd: float,
        proof_text: Optional[str],
        proof_links: List[str],
        created_at: datetime,
    ) -> Submission:
        """Insert a new PENDING submission."""
        entity = Submission(
            subject_id=subject_id,
            exchange=exchange,
            monthly_pnl_pct=monthly_pnl_pct,
            total_pnl_usd=total_pnl_usd,
            win_rate_pct=win_rate_pct,
            volume_usd=volume_usd,
            proof_text=proof_text,
            proof_links=list(proof_links),
            status=SubmissionStatus.PENDING.value,
            created_at=created_at,
        )
        return self._add(entity)

    def mark_reviewed_if_pending(
        self,
        submission_id: UUID,
        status: SubmissionStatus,
        reviewer_note: Optional[str],
        reviewed_by: str,
        reviewed_at: datetime,
    ) -> bool:
        """
        Move a PENDING submission to a terminal status.

        Returns:
            True if this call performed the transition, False if the
            submission was no longer PENDING.
        """
        stmt = (
            update(Submission)
            .where(
                Submission.id == submission_id,
                Submission.status == SubmissionStatus.PENDING.value,
            )
            .values(
                status=status.value,
                reviewer_note=reviewer_note,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
            )
            .execution_options(synchronize_session=False)
        )
        affected = self._execute_write(stmt, "mark_reviewed_if_pending")
        self._logger.debug(
            f"Guarded review update: id={submission_id} status={status.value} affected={affected}"
        )
        return affected == 1

    def refresh(self, submission: Submission) -> Submission:
        """Reload a submission's columns from the database."""
        try:
            self._session.refresh(submission)
            return submission
        except SQLAlchemyError as e:
            self._handle_db_error(e, "refresh", {"id": str(submission.id)})
            raise

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def get_submission(self, submission_id: UUID) -> Optional[Submission]:
        return self._get_by_id(submission_id)

    def list_by_subject(
        self,
        subject_id: str,
        limit: Optional[int] = None,
    ) -> List[Submission]:
        """List a subject's submissions, newest first."""
        stmt = (
            select(Submission)
            .where(Submission.subject_id == subject_id)
            .order_by(desc(Submission.created_at), desc(Submission.id))
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._execute_query(stmt)

    def list_by_status(
        self,
        status: SubmissionStatus,
        limit: Optional[int] = None,
    ) -> List[Submission]:
        """List submissions in a status, newest first."""
        stmt = (
            select(Submission)
            .where(Submission.status == status.value)
            .order_by(desc(Submission.created_at), desc(Submission.id))
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._execute_query(stmt)

    def count_by_status(self) -> Dict[SubmissionStatus, int]:
        """Count submissions per status, zero-filled."""
        counts = {status: 0 for status in SubmissionStatus}
        try:
            rows = self._session.execute(
                select(Submission.status, func.count(Submission.id))
                .group_by(Submission.status)
            ).all()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "count_by_status")
            raise
        for status, count in rows:
            counts[SubmissionStatus(status)] = count
        return counts

    def exists_for_subject(self, subject_id: str, status: SubmissionStatus) -> bool:
        return self._count(
            Submission.subject_id == subject_id,
            Submission.status == status.value,
        ) > 0
