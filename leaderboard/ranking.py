"""
Leaderboard - Ranking Aggregator.

============================================================
PURPOSE
============================================================
Read path of the leaderboard. Answers ranked, filtered,
paginated views of published statistics plus window-level
aggregates.

============================================================
ORDERING
============================================================
1. monthly_pnl_pct   DESC
2. total_pnl_usd     DESC
3. created_at        ASC   (earlier publication ranks higher)
4. id                ASC   (stable identity, makes the order total)

created_at of a published row survives replacement, so a
subject keeps its seniority when it re-publishes.

============================================================
AGGREGATES
============================================================
Computed over every record in the window, ignoring the tier
filter and the page. An empty window yields 0 / 0 / 0.

============================================================
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from core.clock import ClockProtocol
from core.exceptions import ValidationError
from storage.models.leaderboard import PublishedStats, Submission
from storage.repositories.published_stats import WindowSummary
from storage.repositories.submissions import SubmissionRepository

from .config import PaginationConfig, get_config
from .profiles import DisplayProfile, ProfileDirectory
from .publisher import StatsPublisher
from .tiers import get_tier_info
from .types import SubmissionStatus, Tier, TimeWindow, CURRENT_WINDOW


logger = logging.getLogger(__name__)

RECENT_SUBMISSIONS_LIMIT = 5

RANKING_ORDER = (
    desc(PublishedStats.monthly_pnl_pct),
    desc(PublishedStats.total_pnl_usd),
    asc(PublishedStats.created_at),
    asc(PublishedStats.id),
)


# =============================================================
# RESULT TYPES
# =============================================================


@dataclass
class RankedEntry:
    """One row of a ranked page."""
    rank: int
    subject_id: str
    time_window: str
    exchange: str
    monthly_pnl_pct: float
    total_pnl_usd: float
    win_rate_pct: float
    volume_usd: float
    tier: str
    submission_id: UUID
    created_at: datetime
    updated_at: datetime
    username: Optional[str] = None
    display_name: Optional[str] = None

    @classmethod
    def from_row(
        cls,
        rank: int,
        row: PublishedStats,
        profile: Optional[DisplayProfile] = None,
    ) -> "RankedEntry":
        return cls(
            rank=rank,
            subject_id=row.subject_id,
            time_window=row.time_window,
            exchange=row.exchange,
            monthly_pnl_pct=row.monthly_pnl_pct,
            total_pnl_usd=row.total_pnl_usd,
            win_rate_pct=row.win_rate_pct,
            volume_usd=row.volume_usd,
            tier=row.tier,
            submission_id=row.submission_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            username=profile.username if profile else None,
            display_name=profile.display_name if profile else None,
        )

    @property
    def tier_label(self) -> str:
        return get_tier_info(Tier(self.tier)).label

    @property
    def tier_range(self) -> str:
        return get_tier_info(Tier(self.tier)).range_text


@dataclass
class RankingPage:
    """Ranked page plus pagination metadata and window aggregates."""
    window: TimeWindow
    tier: Optional[Tier]
    page: int
    page_size: int
    total_count: int
    total_pages: int
    entries: List[RankedEntry] = field(default_factory=list)
    aggregates: WindowSummary = field(default_factory=lambda: WindowSummary(0.0, 0.0, 0))


@dataclass
class TraderSummary:
    """Read model behind a trader's public page."""
    subject_id: str
    current_stats: Optional[PublishedStats]
    stats_by_window: Dict[str, PublishedStats]
    recent_submissions: List[Submission]
    has_pending_submission: bool
    profile: Optional[DisplayProfile] = None


# =============================================================
# PARAMETER PARSING
# =============================================================


def parse_window(value: Union[TimeWindow, str, None]) -> TimeWindow:
    """Resolve a window argument, defaulting to the current period."""
    if value is None or value == "":
        return CURRENT_WINDOW
    try:
        return TimeWindow(value)
    except ValueError:
        raise ValidationError.for_field(
            "window",
            f"Must be one of: {', '.join(w.value for w in TimeWindow)}",
        )


def parse_tier(value: Union[Tier, str, None]) -> Optional[Tier]:
    if value is None or value == "":
        return None
    try:
        return Tier(value)
    except ValueError:
        raise ValidationError.for_field(
            "tier",
            f"Must be one of: {', '.join(t.value for t in Tier)}",
        )


# =============================================================
# AGGREGATOR
# =============================================================


class RankingAggregator:
    """Ranked leaderboard views over published statistics."""

    def __init__(
        self,
        session: Session,
        profiles: Optional[ProfileDirectory] = None,
        pagination: Optional[PaginationConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self.session = session
        self.profiles = profiles
        self.pagination = pagination or get_config().pagination
        self.publisher = StatsPublisher(session, clock)

    def _validate(
        self,
        window: Union[TimeWindow, str, None],
        tier: Union[Tier, str, None],
        page: int,
        page_size: Optional[int],
    ) -> Tuple[TimeWindow, Optional[Tier], int]:
        errors: List[Dict[str, str]] = []

        try:
            window = parse_window(window)
        except ValidationError as e:
            errors.extend(e.field_errors)
        try:
            tier = parse_tier(tier)
        except ValidationError as e:
            errors.extend(e.field_errors)

        if page_size is None:
            page_size = self.pagination.default_page_size
        if page < 1:
            errors.append({"field": "page", "message": "Must be at least 1"})
        if not 1 <= page_size <= self.pagination.max_page_size:
            errors.append({
                "field": "limit",
                "message": f"Must be between 1 and {self.pagination.max_page_size}",
            })

        if errors:
            raise ValidationError("Invalid leaderboard parameters", field_errors=errors)
        return window, tier, page_size

    def _lookup_profiles(self, subject_ids: List[str]) -> Dict[str, DisplayProfile]:
        if self.profiles is None or not subject_ids:
            return {}
        return self.profiles.lookup(subject_ids)

    def rank(
        self,
        window: Union[TimeWindow, str, None] = None,
        tier: Union[Tier, str, None] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> RankingPage:
        """
        Rank published records for a window.

        Args:
            window: Reporting period, defaults to the current one
            tier: Optional exact-match tier filter
            page: 1-indexed page number
            page_size: Rows per page, defaults to the configured size

        Raises:
            ValidationError: unknown window/tier or out-of-range paging,
                listing every offending parameter
        """
        window, tier, page_size = self._validate(window, tier, page, page_size)

        conditions: List[Any] = [PublishedStats.time_window == window.value]
        if tier is not None:
            conditions.append(PublishedStats.tier == tier.value)

        offset = (page - 1) * page_size
        rows, total = self.publisher.query(conditions, RANKING_ORDER, offset, page_size)
        aggregates = self.publisher.summarize(window)

        profiles = self._lookup_profiles([r.subject_id for r in rows])
        entries = [
            RankedEntry.from_row(offset + i + 1, row, profiles.get(row.subject_id))
            for i, row in enumerate(rows)
        ]

        logger.debug(
            f"Ranked window={window.value} tier={tier.value if tier else '-'} "
            f"page={page} size={page_size}: {len(entries)}/{total}"
        )

        return RankingPage(
            window=window,
            tier=tier,
            page=page,
            page_size=page_size,
            total_count=total,
            total_pages=math.ceil(total / page_size),
            entries=entries,
            aggregates=aggregates,
        )

    def trader_summary(self, subject_id: str) -> TraderSummary:
        """Published stats per window and recent submissions for one subject."""
        published = self.publisher.list_for_subject(subject_id)
        submissions = SubmissionRepository(self.session)

        profile = self._lookup_profiles([subject_id]).get(subject_id)

        return TraderSummary(
            subject_id=subject_id,
            current_stats=published[0] if published else None,
            stats_by_window={row.time_window: row for row in published},
            recent_submissions=submissions.list_by_subject(
                subject_id, limit=RECENT_SUBMISSIONS_LIMIT
            ),
            has_pending_submission=submissions.exists_for_subject(
                subject_id, SubmissionStatus.PENDING
            ),
            profile=profile,
        )


__all__ = [
    "RECENT_SUBMISSIONS_LIMIT",
    "RANKING_ORDER",
    "RankedEntry",
    "RankingPage",
    "TraderSummary",
    "RankingAggregator",
    "parse_window",
    "parse_tier",
]
