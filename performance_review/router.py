"""
FastAPI Router for Submission and Review Endpoints.

Provides REST API for the review workflow:
- Submit performance figures
- List own submissions
- Reviewer queue
- Approve / reject
"""

from typing import Any, Callable, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from core.clock import ClockProtocol
from core.identity import Identity, ReviewerPolicy
from database.engine import transaction_scope
from leaderboard.dependencies import (
    get_clock,
    get_current_identity,
    get_db,
    get_reviewer_identity,
    get_reviewer_policy,
    get_session_factory,
)

from .coordinator import ReviewCoordinator
from .registry import SubmissionRegistry
from .schemas import (
    ReviewEnvelope,
    ReviewQueueEnvelope,
    ReviewRequest,
    SubmissionEnvelope,
    SubmissionListEnvelope,
    SubmissionResponse,
)


router = APIRouter(prefix="/api", tags=["Performance Review"])


# =============================================================
# SUBMISSIONS
# =============================================================

@router.post("/submit", response_model=SubmissionEnvelope)
def create_submission(
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    clock: ClockProtocol = Depends(get_clock),
):
    """
    Submit performance figures for review.

    Every out-of-range or malformed field is reported in one response.
    """
    with transaction_scope(session_factory) as session:
        submission = SubmissionRegistry(session, clock).create(identity.subject_id, payload)

    return SubmissionEnvelope(
        data=SubmissionResponse.model_validate(submission),
        message="Submission created successfully. Awaiting admin approval.",
    )


@router.get("/submit", response_model=SubmissionListEnvelope)
def list_my_submissions(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Caller's submissions, newest first."""
    submissions = SubmissionRegistry(db).list_by_subject(identity.subject_id)
    return SubmissionListEnvelope(
        data=[SubmissionResponse.model_validate(s) for s in submissions],
    )


# =============================================================
# REVIEW
# =============================================================

@router.get("/admin/submissions", response_model=ReviewQueueEnvelope)
def get_review_queue(
    reviewer: Identity = Depends(get_reviewer_identity),
    db: Session = Depends(get_db),
):
    """Pending submissions, newest first, with per-status counts."""
    registry = SubmissionRegistry(db)
    pending = registry.list_pending()
    counts = registry.count_by_status()

    return ReviewQueueEnvelope(
        data=[SubmissionResponse.model_validate(s) for s in pending],
        stats={status.value: count for status, count in counts.items()},
    )


@router.post("/admin/submissions", response_model=ReviewEnvelope)
def review_submission(
    request: ReviewRequest,
    reviewer: Identity = Depends(get_current_identity),
    policy: ReviewerPolicy = Depends(get_reviewer_policy),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    clock: ClockProtocol = Depends(get_clock),
):
    """
    Approve or reject a pending submission.

    409 if it was already reviewed; 503 if the transaction could
    not commit, in which case the same request may be retried.
    """
    coordinator = ReviewCoordinator(session_factory, policy=policy, clock=clock)
    result = coordinator.review(
        request.submission_id,
        request.action,
        reviewer,
        note=request.admin_note,
    )

    return ReviewEnvelope(
        message=result.message,
        data={
            "submission_id": str(result.transition.submission_id),
            "status": result.status.value,
            "tier": result.published.tier if result.published else None,
        },
    )
