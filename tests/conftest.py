"""
Shared fixtures.

Every test gets its own in-memory SQLite database and a MockClock
that advances one second per reading, so creation order is
deterministic.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from core.clock import MockClock
from core.identity import AdminAllowListPolicy, Identity
from database.engine import create_all_tables, create_database_engine
from leaderboard.config import PaginationConfig
from performance_review.coordinator import ReviewCoordinator
from performance_review.registry import SubmissionRegistry


ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def engine():
    engine = create_database_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def clock():
    return MockClock(datetime(2024, 3, 1, tzinfo=timezone.utc), step=timedelta(seconds=1))


@pytest.fixture
def pagination():
    return PaginationConfig(default_page_size=10, max_page_size=100)


@pytest.fixture
def admin():
    return Identity(subject_id="admin-1", email=ADMIN_EMAIL)


@pytest.fixture
def policy():
    return AdminAllowListPolicy([ADMIN_EMAIL])


@pytest.fixture
def coordinator(session_factory, policy, clock):
    return ReviewCoordinator(session_factory, policy=policy, clock=clock)


def make_payload(**overrides):
    payload = {
        "exchange": "BINANCE",
        "monthly_pnl_pct": 12.5,
        "total_pnl_usd": 15000.0,
        "win_rate_pct": 60.0,
        "volume_usd": 120000.0,
        "proof_text": "Screenshot of monthly statement",
        "proof_links": ["https://example.com/proof.png"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def submit(session_factory, clock):
    """Create and commit a submission, returning its id."""
    def _submit(subject_id="trader-a", **overrides):
        with session_factory() as s:
            submission = SubmissionRegistry(s, clock).create(subject_id, make_payload(**overrides))
            s.commit()
            return submission.id
    return _submit


@pytest.fixture
def approve(coordinator, admin, submit):
    """Submit and approve in one step, returning the submission id."""
    def _approve(subject_id="trader-a", **overrides):
        sid = submit(subject_id, **overrides)
        coordinator.review(sid, "approve", admin)
        return sid
    return _approve


@pytest.fixture
def payload():
    """Builder for a valid submission payload."""
    return make_payload
