"""
Leaderboard - Stats Publisher.

============================================================
PURPOSE
============================================================
Owns the published-stats projection: at most one row per
(subject, window), created or fully replaced on approval.

The publisher never commits. It writes into the session it is
given, so the Review Coordinator can put the status transition
and the publication inside one transaction.

Tier is recomputed here from volume on every publish.

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, ClockFactory
from storage.models.leaderboard import PublishedStats
from storage.repositories.published_stats import PublishedStatsRepository, WindowSummary

from .tiers import classify
from .types import Exchange, TimeWindow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsRecord:
    """Figures carried from an approved submission into the projection."""
    exchange: Exchange
    monthly_pnl_pct: float
    total_pnl_usd: float
    win_rate_pct: float
    volume_usd: float
    submission_id: UUID


class StatsPublisher:
    """Create-or-replace access to published statistics."""

    def __init__(self, session: Session, clock: Optional[ClockProtocol] = None):
        self.session = session
        self.clock = clock or ClockFactory.get_clock()
        self._repo = PublishedStatsRepository(session)

    def publish(
        self,
        subject_id: str,
        window: TimeWindow,
        record: StatsRecord,
    ) -> PublishedStats:
        """
        Write the record for (subject, window), replacing any existing one.

        Publishing identical figures twice leaves the same end state.
        """
        tier = classify(record.volume_usd)
        row = self._repo.upsert(
            subject_id=subject_id,
            time_window=TimeWindow(window).value,
            exchange=Exchange(record.exchange).value,
            monthly_pnl_pct=record.monthly_pnl_pct,
            total_pnl_usd=record.total_pnl_usd,
            win_rate_pct=record.win_rate_pct,
            volume_usd=record.volume_usd,
            tier=tier.value,
            submission_id=record.submission_id,
            published_at=self.clock.now(),
        )
        logger.info(
            f"Published {subject_id}/{TimeWindow(window).value}: "
            f"monthly={record.monthly_pnl_pct}% tier={tier.value}"
        )
        return row

    def get(self, subject_id: str, window: TimeWindow) -> Optional[PublishedStats]:
        return self._repo.get(subject_id, TimeWindow(window).value)

    def query(
        self,
        conditions: Sequence[Any],
        order_by: Sequence[Any],
        offset: int,
        limit: int,
    ) -> Tuple[List[PublishedStats], int]:
        """Page of rows plus total, filtered and ordered as the caller asks."""
        return self._repo.query(conditions, order_by, offset, limit)

    def summarize(self, window: TimeWindow) -> WindowSummary:
        return self._repo.summarize(TimeWindow(window).value)

    def list_for_subject(self, subject_id: str) -> List[PublishedStats]:
        return self._repo.list_for_subject(subject_id)


__all__ = ["StatsRecord", "StatsPublisher"]
