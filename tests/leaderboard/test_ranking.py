"""
Tests for the Ranking Aggregator.

Tests cover:
- Ordering: monthly % desc, total PnL desc, earliest first, id
- Tier and window filtering
- Pagination bounds and page concatenation
- Aggregates over the whole window, zero when empty
- Profile decoration and the trader summary
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from core.exceptions import ValidationError
from leaderboard.config import PaginationConfig
from leaderboard.profiles import InMemoryProfileDirectory
from leaderboard.publisher import StatsPublisher, StatsRecord
from leaderboard.ranking import RankingAggregator
from leaderboard.types import Exchange, Tier, TimeWindow


@pytest.fixture
def publish(session, clock, submit):
    """Publish figures for a subject directly into a window."""
    def _publish(subject, pct, total, volume=10_000.0, window=TimeWindow.THIS_MONTH, publisher_clock=None):
        sid = submit(subject)
        return StatsPublisher(session, publisher_clock or clock).publish(
            subject,
            window,
            StatsRecord(
                exchange=Exchange.BINANCE,
                monthly_pnl_pct=pct,
                total_pnl_usd=total,
                win_rate_pct=50.0,
                volume_usd=volume,
                submission_id=sid,
            ),
        )
    return _publish


@pytest.fixture
def aggregator(session, pagination):
    return RankingAggregator(session, pagination=pagination)


# =============================================================
# TEST: Ordering
# =============================================================

class TestOrdering:
    """Primary business ordering."""

    def test_sorted_by_monthly_pct_desc(self, publish, aggregator):
        publish("low", 5.0, 100.0)
        publish("high", 50.0, 100.0)
        publish("mid", 20.0, 100.0)

        page = aggregator.rank(TimeWindow.THIS_MONTH)

        assert [e.subject_id for e in page.entries] == ["high", "mid", "low"]
        assert [e.rank for e in page.entries] == [1, 2, 3]

    def test_equal_pct_larger_total_first(self, publish, aggregator):
        publish("small", 10.0, 1_000.0)
        publish("large", 10.0, 9_000.0)

        page = aggregator.rank()

        assert [e.subject_id for e in page.entries] == ["large", "small"]

    def test_full_tie_earlier_first(self, publish, aggregator):
        publish("first", 10.0, 1_000.0)
        publish("second", 10.0, 1_000.0)
        publish("third", 10.0, 1_000.0)

        page = aggregator.rank()

        assert [e.subject_id for e in page.entries] == ["first", "second", "third"]

    def test_identical_timestamps_still_total_order(self, publish, aggregator):
        frozen = MockClock(datetime(2024, 5, 1, tzinfo=timezone.utc))
        publish("x", 10.0, 1_000.0, publisher_clock=frozen)
        publish("y", 10.0, 1_000.0, publisher_clock=frozen)

        first = [e.subject_id for e in aggregator.rank().entries]
        second = [e.subject_id for e in aggregator.rank().entries]

        assert first == second == ["x", "y"]

    def test_republish_keeps_seniority(self, publish, aggregator):
        publish("veteran", 10.0, 1_000.0)
        publish("newcomer", 10.0, 1_000.0)
        publish("veteran", 10.0, 1_000.0)

        page = aggregator.rank()

        assert [e.subject_id for e in page.entries] == ["veteran", "newcomer"]

    def test_order_invariant_holds(self, publish, aggregator):
        figures = [(3.0, 10.0), (3.0, 50.0), (-2.0, 500.0), (12.0, 0.0), (3.0, 50.0), (12.0, -5.0)]
        for i, (pct, total) in enumerate(figures):
            publish(f"s{i}", pct, total)

        entries = aggregator.rank(page_size=100).entries

        for a, b in zip(entries, entries[1:]):
            assert a.monthly_pnl_pct >= b.monthly_pnl_pct
            if a.monthly_pnl_pct == b.monthly_pnl_pct:
                assert a.total_pnl_usd >= b.total_pnl_usd
                if a.total_pnl_usd == b.total_pnl_usd:
                    assert a.created_at <= b.created_at


# =============================================================
# TEST: Filtering
# =============================================================

class TestFiltering:
    """Window and tier filters."""

    def test_window_filter(self, publish, aggregator):
        publish("month", 10.0, 100.0)
        publish("ytd", 90.0, 100.0, window=TimeWindow.YTD)

        assert [e.subject_id for e in aggregator.rank("THIS_MONTH").entries] == ["month"]
        assert [e.subject_id for e in aggregator.rank(TimeWindow.YTD).entries] == ["ytd"]

    def test_default_window_is_current(self, publish, aggregator):
        publish("month", 10.0, 100.0)
        assert aggregator.rank().window == TimeWindow.THIS_MONTH

    def test_tier_filter(self, publish, aggregator):
        publish("dolphin", 10.0, 100.0, volume=1_000)
        publish("shark", 20.0, 100.0, volume=60_000)
        publish("whale", 30.0, 100.0, volume=300_000)

        page = aggregator.rank(tier=Tier.SHARK)

        assert [e.subject_id for e in page.entries] == ["shark"]
        assert page.total_count == 1

    def test_unknown_window_or_tier(self, aggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.rank(window="LAST_WEEK")
        assert exc_info.value.fields == ["window"]

        with pytest.raises(ValidationError) as exc_info:
            aggregator.rank(tier="MINNOW")
        assert exc_info.value.fields == ["tier"]


# =============================================================
# TEST: Pagination
# =============================================================

class TestPagination:
    """Page arithmetic and bounds."""

    def test_pages_concatenate_to_full_ranking(self, publish, aggregator):
        for i in range(7):
            publish(f"s{i}", float(i % 3), float(i * 10))

        full = [e.subject_id for e in aggregator.rank(page_size=100).entries]
        pages = []
        first = aggregator.rank(page=1, page_size=3)
        for page in range(1, first.total_pages + 1):
            pages.extend(e.subject_id for e in aggregator.rank(page=page, page_size=3).entries)

        assert first.total_count == 7
        assert first.total_pages == 3
        assert pages == full
        assert len(set(pages)) == 7

    def test_rank_is_absolute(self, publish, aggregator):
        for i in range(5):
            publish(f"s{i}", float(i), 0.0)

        page = aggregator.rank(page=2, page_size=2)

        assert [e.rank for e in page.entries] == [3, 4]

    def test_page_past_end_is_empty(self, publish, aggregator):
        publish("only", 1.0, 1.0)
        page = aggregator.rank(page=5, page_size=10)
        assert page.entries == []
        assert page.total_count == 1

    def test_default_page_size_from_config(self, session):
        aggregator = RankingAggregator(session, pagination=PaginationConfig(default_page_size=25))
        assert aggregator.rank().page_size == 25

    @pytest.mark.parametrize("page,size,fields", [
        (0, 10, ["page"]),
        (1, 0, ["limit"]),
        (1, 101, ["limit"]),
        (-1, 500, ["page", "limit"]),
    ])
    def test_bounds(self, aggregator, page, size, fields):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.rank(page=page, page_size=size)
        assert exc_info.value.fields == fields

    def test_every_bad_parameter_reported_together(self, aggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.rank(window="BAD", tier="BAD", page=0, page_size=0)
        assert exc_info.value.fields == ["window", "tier", "page", "limit"]

    def test_empty_window(self, aggregator):
        page = aggregator.rank(TimeWindow.ALL_TIME)

        assert page.entries == []
        assert page.total_count == 0
        assert page.total_pages == 0


# =============================================================
# TEST: Aggregates
# =============================================================

class TestAggregates:
    """Computed over the whole window."""

    def test_empty_aggregates_are_zero(self, aggregator):
        aggregates = aggregator.rank().aggregates

        assert (aggregates.total_pnl_usd, aggregates.avg_monthly_pnl_pct, aggregates.count) == (0, 0, 0)

    def test_independent_of_page_and_tier(self, publish, aggregator):
        publish("a", 10.0, 1_000.0, volume=1_000)
        publish("b", 20.0, 3_000.0, volume=300_000)
        publish("c", 60.0, -1_000.0, volume=1_000)

        page = aggregator.rank(tier=Tier.WHALE, page=1, page_size=1)

        assert page.aggregates.count == 3
        assert page.aggregates.total_pnl_usd == pytest.approx(3_000.0)
        assert page.aggregates.avg_monthly_pnl_pct == pytest.approx(30.0)


# =============================================================
# TEST: Profiles and trader summary
# =============================================================

class TestDecoration:
    """Display profiles and per-trader read model."""

    def test_entries_decorated_when_profile_known(self, session, pagination, publish):
        profiles = InMemoryProfileDirectory()
        profiles.register("known", "whale_hunter", "Whale Hunter")
        publish("known", 20.0, 100.0)
        publish("anonymous", 10.0, 100.0)

        page = RankingAggregator(session, profiles=profiles, pagination=pagination).rank()

        known, anonymous = page.entries
        assert (known.username, known.display_name) == ("whale_hunter", "Whale Hunter")
        assert anonymous.username is None
        assert page.total_count == 2

    def test_trader_summary(self, publish, aggregator, submit):
        publish("trader-a", 10.0, 100.0, window=TimeWindow.ALL_TIME)
        publish("trader-a", 15.0, 200.0)
        for _ in range(6):
            submit("trader-a")

        summary = aggregator.trader_summary("trader-a")

        assert summary.current_stats.time_window == TimeWindow.THIS_MONTH.value
        assert set(summary.stats_by_window) == {"THIS_MONTH", "ALL_TIME"}
        assert len(summary.recent_submissions) == 5
        assert summary.has_pending_submission

    def test_trader_summary_unknown(self, aggregator):
        summary = aggregator.trader_summary("ghost")

        assert summary.current_stats is None
        assert summary.stats_by_window == {}
        assert summary.recent_submissions == []
        assert not summary.has_pending_submission
