"""
Tests for the Review Coordinator.

Tests cover:
- Approve publishes exactly one record for the current window
- Reject never touches published stats
- Second review of the same submission is a Conflict
- Stale read losing to a committed review is a Conflict
- Storage failure during publish or commit rolls back everything
- Reviewer policy is enforced before anything is read
"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransactionAbortedError,
    ValidationError,
)
from core.identity import AdminAllowListPolicy, Identity
from database.engine import create_all_tables, create_database_engine
from leaderboard.publisher import StatsPublisher
from leaderboard.types import CURRENT_WINDOW, ReviewDecision, SubmissionStatus, Tier
from performance_review.coordinator import ReviewCoordinator
from performance_review.registry import SubmissionRegistry
from storage.models.leaderboard import PublishedStats, Submission
from storage.repositories.exceptions import DuplicateRecordError
from storage.repositories.submissions import SubmissionRepository


def load_submission(session_factory, sid):
    with session_factory() as s:
        return s.get(Submission, sid)


def published_rows(session_factory):
    with session_factory() as s:
        return list(s.execute(select(PublishedStats)).scalars().all())


# =============================================================
# TEST: Approve / Reject
# =============================================================

class TestApprove:
    """Approval transitions and publishes atomically."""

    def test_approve_publishes_current_window(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a", volume_usd=300_000, monthly_pnl_pct=42.0, total_pnl_usd=90_000)

        result = coordinator.review(sid, ReviewDecision.APPROVE, admin, note="Looks right")

        assert result.status == SubmissionStatus.APPROVED
        assert result.message == "Submission approved successfully"
        assert result.published is not None
        assert result.published.tier == Tier.WHALE.value

        submission = load_submission(session_factory, sid)
        assert submission.status == SubmissionStatus.APPROVED.value
        assert submission.reviewer_note == "Looks right"
        assert submission.reviewed_by == admin.email
        assert submission.reviewed_at is not None

        rows = published_rows(session_factory)
        assert len(rows) == 1
        row = rows[0]
        assert row.subject_id == "trader-a"
        assert row.time_window == CURRENT_WINDOW.value
        assert row.monthly_pnl_pct == 42.0
        assert row.total_pnl_usd == 90_000
        assert row.volume_usd == 300_000
        assert row.submission_id == sid

    def test_tier_computed_from_volume(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a", volume_usd=50_000)
        result = coordinator.review(sid, "approve", admin)
        assert result.published.tier == Tier.SHARK.value

    def test_second_approval_replaces_record(self, coordinator, admin, submit, session_factory):
        first = submit("trader-a", monthly_pnl_pct=10.0, volume_usd=10_000)
        coordinator.review(first, "approve", admin)
        original = published_rows(session_factory)[0]

        second = submit("trader-a", monthly_pnl_pct=25.0, volume_usd=260_000)
        coordinator.review(second, "approve", admin)

        rows = published_rows(session_factory)
        assert len(rows) == 1
        row = rows[0]
        assert row.id == original.id
        assert row.monthly_pnl_pct == 25.0
        assert row.tier == Tier.WHALE.value
        assert row.submission_id == second
        assert row.created_at == original.created_at
        assert row.updated_at > original.updated_at

    def test_reviewer_without_email_recorded_by_subject(self, session_factory, submit, clock):
        reviewer = Identity(subject_id="moderator-7")
        coordinator = ReviewCoordinator(session_factory, policy=None, clock=clock)
        sid = submit()

        coordinator.review(sid, "reject", reviewer)

        assert load_submission(session_factory, sid).reviewed_by == "moderator-7"


class TestReject:
    """Rejection never publishes."""

    def test_reject_creates_no_stats(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a")

        result = coordinator.review(sid, "reject", admin, note="Proof unreadable")

        assert result.status == SubmissionStatus.REJECTED
        assert result.published is None
        assert published_rows(session_factory) == []
        assert load_submission(session_factory, sid).status == SubmissionStatus.REJECTED.value

    def test_reject_leaves_existing_stats_untouched(self, coordinator, admin, submit, session_factory):
        approved = submit("trader-a", monthly_pnl_pct=8.0)
        coordinator.review(approved, "approve", admin)
        before = published_rows(session_factory)[0]

        rejected = submit("trader-a", monthly_pnl_pct=99.0)
        coordinator.review(rejected, "reject", admin)

        after = published_rows(session_factory)
        assert len(after) == 1
        assert after[0].monthly_pnl_pct == 8.0
        assert after[0].submission_id == approved
        assert after[0].updated_at == before.updated_at


# =============================================================
# TEST: Conflicts
# =============================================================

class TestConflict:
    """Terminal states are final."""

    @pytest.mark.parametrize("first,second", [
        ("approve", "approve"),
        ("approve", "reject"),
        ("reject", "approve"),
        ("reject", "reject"),
    ])
    def test_second_review_conflicts(self, coordinator, admin, submit, session_factory, first, second):
        sid = submit("trader-a")
        coordinator.review(sid, first, admin)
        rows_before = [(r.id, r.updated_at, r.submission_id) for r in published_rows(session_factory)]
        status_before = load_submission(session_factory, sid).status

        with pytest.raises(ConflictError) as exc_info:
            coordinator.review(sid, second, admin)

        assert exc_info.value.status_code == 409
        assert not exc_info.value.retryable
        assert load_submission(session_factory, sid).status == status_before
        rows_after = [(r.id, r.updated_at, r.submission_id) for r in published_rows(session_factory)]
        assert rows_after == rows_before

    def test_unknown_submission_not_found(self, coordinator, admin):
        with pytest.raises(NotFoundError):
            coordinator.review(uuid.uuid4(), "approve", admin)

    def test_invalid_input_lists_every_field(self, coordinator, admin):
        with pytest.raises(ValidationError) as exc_info:
            coordinator.review("nope", "maybe", admin, note="x" * 1001)

        assert set(exc_info.value.fields) == {"submission_id", "action", "admin_note"}


class TestStaleReview:
    """The database guard decides races, not the in-process read."""

    @pytest.fixture
    def file_factory(self, tmp_path):
        engine = create_database_engine(f"sqlite:///{tmp_path / 'race.db'}")
        create_all_tables(engine)
        yield sessionmaker(bind=engine, expire_on_commit=False)
        engine.dispose()

    def test_guarded_update_loses_after_commit(self, file_factory, admin, policy, clock, payload):
        with file_factory() as s:
            sid = SubmissionRegistry(s, clock).create("trader-a", payload()).id
            s.commit()

        stale = file_factory()
        try:
            repo = SubmissionRepository(stale)
            view = repo.get_submission(sid)
            assert view.status == SubmissionStatus.PENDING.value

            ReviewCoordinator(file_factory, policy=policy, clock=clock).review(sid, "approve", admin)

            won = repo.mark_reviewed_if_pending(
                sid, SubmissionStatus.REJECTED, None, "other@example.com", clock.now()
            )
            assert won is False
            stale.rollback()
        finally:
            stale.close()

        assert load_submission(file_factory, sid).status == SubmissionStatus.APPROVED.value

    def test_coordinator_reports_conflict_when_race_lost(self, file_factory, admin, policy, clock, payload):
        with file_factory() as s:
            sid = SubmissionRegistry(s, clock).create("trader-a", payload()).id
            s.commit()

        winner = ReviewCoordinator(file_factory, policy=policy, clock=clock)
        loser = ReviewCoordinator(file_factory, policy=policy, clock=clock)
        original = SubmissionRepository.mark_reviewed_if_pending
        raced = []

        def race(repo, *args, **kwargs):
            # Competing reviewer commits after our read, before our write
            if not raced:
                raced.append(True)
                winner.review(sid, "reject", Identity("admin-2", "admin@example.com"))
            return original(repo, *args, **kwargs)

        with patch.object(SubmissionRepository, "mark_reviewed_if_pending", autospec=True, side_effect=race):
            with pytest.raises(ConflictError):
                loser.review(sid, "approve", admin)

        assert load_submission(file_factory, sid).status == SubmissionStatus.REJECTED.value
        assert published_rows(file_factory) == []


# =============================================================
# TEST: Atomicity
# =============================================================

class TestAtomicity:
    """Approved-but-unpublished is never observable."""

    def test_publish_failure_aborts_and_keeps_pending(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a")
        failure = DuplicateRecordError("PublishedStatsRepository", "upsert", "unique constraint")

        with patch.object(StatsPublisher, "publish", side_effect=failure):
            with pytest.raises(TransactionAbortedError) as exc_info:
                coordinator.review(sid, "approve", admin)

        assert exc_info.value.retryable
        assert exc_info.value.status_code == 503
        assert "constraint" not in exc_info.value.public_message

        submission = load_submission(session_factory, sid)
        assert submission.status == SubmissionStatus.PENDING.value
        assert submission.reviewed_at is None
        assert published_rows(session_factory) == []

    def test_commit_failure_aborts(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a")

        with patch.object(Session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))):
            with pytest.raises(TransactionAbortedError):
                coordinator.review(sid, "approve", admin)

        assert load_submission(session_factory, sid).status == SubmissionStatus.PENDING.value
        assert published_rows(session_factory) == []

    def test_retry_after_abort_succeeds(self, coordinator, admin, submit, session_factory):
        sid = submit("trader-a")
        failure = DuplicateRecordError("PublishedStatsRepository", "upsert", "unique constraint")

        with patch.object(StatsPublisher, "publish", side_effect=failure):
            with pytest.raises(TransactionAbortedError):
                coordinator.review(sid, "approve", admin)

        result = coordinator.review(sid, "approve", admin)

        assert result.status == SubmissionStatus.APPROVED
        assert len(published_rows(session_factory)) == 1


# =============================================================
# TEST: Authorization
# =============================================================

class TestReviewerPolicy:
    """Only allow-listed reviewers may decide."""

    def test_non_admin_forbidden(self, coordinator, submit, session_factory):
        sid = submit("trader-a")
        outsider = Identity(subject_id="trader-b", email="trader-b@example.com")

        with pytest.raises(ForbiddenError):
            coordinator.review(sid, "approve", outsider)

        assert load_submission(session_factory, sid).status == SubmissionStatus.PENDING.value

    def test_allow_list_case_insensitive(self):
        policy = AdminAllowListPolicy([" Admin@Example.com "])
        assert policy.is_reviewer(Identity("x", "admin@example.COM"))
        assert not policy.is_reviewer(Identity("x", None))


# =============================================================
# TEST: Scenario
# =============================================================

def test_whale_submission_appears_on_leaderboard(coordinator, admin, session_factory, clock, payload, pagination):
    """Submit 300k volume, approve, and find it ranked with its figures unchanged."""
    from leaderboard.ranking import RankingAggregator

    with session_factory() as s:
        sid = SubmissionRegistry(s, clock).create(
            "trader-a", payload(volume_usd=300_000, monthly_pnl_pct=18.2, total_pnl_usd=54_000)
        ).id
        s.commit()

    coordinator.review(sid, "approve", admin)

    with session_factory() as s:
        page = RankingAggregator(s, pagination=pagination).rank()

    assert page.total_count == 1
    entry = page.entries[0]
    assert entry.subject_id == "trader-a"
    assert entry.tier == Tier.WHALE.value
    assert entry.monthly_pnl_pct == 18.2
    assert entry.total_pnl_usd == 54_000
    assert entry.volume_usd == 300_000
    assert entry.rank == 1
