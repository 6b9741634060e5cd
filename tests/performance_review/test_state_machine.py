"""
Tests for submission status transitions.
"""

import uuid

import pytest

from core.exceptions import ConflictError
from leaderboard.types import ReviewDecision, SubmissionStatus
from performance_review.state_machine import VALID_TRANSITIONS, TransitionGuard


class TestTransitionRules:
    """PENDING -> APPROVED | REJECTED, nothing else."""

    def test_every_status_has_rules(self):
        assert set(VALID_TRANSITIONS) == set(SubmissionStatus)

    @pytest.mark.parametrize("target", [SubmissionStatus.APPROVED, SubmissionStatus.REJECTED])
    def test_pending_can_be_decided(self, target):
        allowed, _ = TransitionGuard.can_transition(SubmissionStatus.PENDING, target)
        assert allowed

    @pytest.mark.parametrize("source", [SubmissionStatus.APPROVED, SubmissionStatus.REJECTED])
    @pytest.mark.parametrize("target", list(SubmissionStatus))
    def test_terminal_states_are_final(self, source, target):
        allowed, reason = TransitionGuard.can_transition(source, target)
        assert not allowed
        assert "terminal" in reason

    def test_pending_to_pending_invalid(self):
        allowed, reason = TransitionGuard.can_transition(SubmissionStatus.PENDING, SubmissionStatus.PENDING)
        assert not allowed
        assert "Invalid transition" in reason

    def test_terminal_flags(self):
        assert not SubmissionStatus.PENDING.is_terminal()
        assert SubmissionStatus.APPROVED.is_terminal()
        assert SubmissionStatus.REJECTED.is_terminal()


class TestEnsureCanReview:
    """Guard raising Conflict."""

    def test_pending_passes(self):
        TransitionGuard.ensure_can_review(uuid.uuid4(), SubmissionStatus.PENDING, ReviewDecision.APPROVE)

    @pytest.mark.parametrize("decision", list(ReviewDecision))
    def test_reviewed_raises_conflict(self, decision):
        with pytest.raises(ConflictError) as exc_info:
            TransitionGuard.ensure_can_review(uuid.uuid4(), SubmissionStatus.APPROVED, decision)
        assert exc_info.value.message == "Submission already reviewed"

    def test_decision_targets(self):
        assert ReviewDecision.APPROVE.target_status == SubmissionStatus.APPROVED
        assert ReviewDecision.REJECT.target_status == SubmissionStatus.REJECTED
