"""
FastAPI Router for the Public Leaderboard.

Provides:
- Ranked leaderboard per window, optional tier filter
- Per-trader summary
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from performance_review.schemas import SubmissionResponse

from .config import LeaderboardConfig
from .dependencies import get_app_config, get_clock, get_db, get_profile_directory
from .ranking import RankingAggregator
from .schemas import (
    LeaderboardAggregates,
    LeaderboardEntry,
    LeaderboardEnvelope,
    PaginationInfo,
    PublishedStatsResponse,
    TraderEnvelope,
    TraderProfileResponse,
)


router = APIRouter(prefix="/api", tags=["Leaderboard"])


def get_aggregator(
    db: Session = Depends(get_db),
    config: LeaderboardConfig = Depends(get_app_config),
    profiles=Depends(get_profile_directory),
    clock=Depends(get_clock),
) -> RankingAggregator:
    return RankingAggregator(db, profiles=profiles, pagination=config.pagination, clock=clock)


@router.get("/leaderboard", response_model=LeaderboardEnvelope)
def get_leaderboard(
    window: Optional[str] = Query(None, description="Reporting window, default THIS_MONTH"),
    tier: Optional[str] = Query(None, description="DOLPHIN, SHARK or WHALE"),
    page: int = Query(1),
    limit: Optional[int] = Query(None, description="Page size"),
    aggregator: RankingAggregator = Depends(get_aggregator),
):
    """
    Ranked published stats for a window.

    Ordered by monthly PnL % desc, total PnL desc, then earliest
    publication. Aggregates cover the whole window.
    """
    result = aggregator.rank(window=window, tier=tier, page=page, page_size=limit)

    return LeaderboardEnvelope(
        window=result.window.value,
        window_label=result.window.label,
        tier=result.tier.value if result.tier else None,
        data=[LeaderboardEntry.model_validate(e) for e in result.entries],
        pagination=PaginationInfo(
            page=result.page,
            limit=result.page_size,
            total=result.total_count,
            total_pages=result.total_pages,
        ),
        aggregates=LeaderboardAggregates(
            total_profit=result.aggregates.total_pnl_usd,
            avg_roi=result.aggregates.avg_monthly_pnl_pct,
            total_traders=result.aggregates.count,
        ),
    )


@router.get("/traders/{subject_id}", response_model=TraderEnvelope)
def get_trader(
    subject_id: str,
    aggregator: RankingAggregator = Depends(get_aggregator),
):
    """Published stats per window plus the five most recent submissions."""
    summary = aggregator.trader_summary(subject_id)

    if summary.profile is None and not summary.stats_by_window and not summary.recent_submissions:
        raise NotFoundError("Trader", subject_id)

    return TraderEnvelope(
        data=TraderProfileResponse(
            subject_id=subject_id,
            username=summary.profile.username if summary.profile else None,
            display_name=summary.profile.display_name if summary.profile else None,
            current_stats=(
                PublishedStatsResponse.model_validate(summary.current_stats)
                if summary.current_stats else None
            ),
            stats_by_window={
                window: PublishedStatsResponse.model_validate(row)
                for window, row in summary.stats_by_window.items()
            },
            recent_submissions=[
                SubmissionResponse.model_validate(s) for s in summary.recent_submissions
            ],
            has_pending_submission=summary.has_pending_submission,
        )
    )
