"""
Pydantic Schemas for the Leaderboard Read API.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from performance_review.schemas import SubmissionResponse


# =============================================================
# LEADERBOARD
# =============================================================

class LeaderboardEntry(BaseModel):
    rank: int
    subject_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    time_window: str
    exchange: str
    monthly_pnl_pct: float
    total_pnl_usd: float
    win_rate_pct: float
    volume_usd: float
    tier: str
    tier_label: str
    tier_range: str
    submission_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class LeaderboardAggregates(BaseModel):
    """Figures over the whole window, not the visible page."""
    total_profit: float
    avg_roi: float
    total_traders: int


class LeaderboardEnvelope(BaseModel):
    success: bool = True
    window: str
    window_label: str
    tier: Optional[str] = None
    data: List[LeaderboardEntry]
    pagination: PaginationInfo
    aggregates: LeaderboardAggregates


# =============================================================
# TRADER PAGE
# =============================================================

class PublishedStatsResponse(BaseModel):
    subject_id: str
    time_window: str
    window_label: str
    exchange: str
    monthly_pnl_pct: float
    total_pnl_usd: float
    win_rate_pct: float
    volume_usd: float
    tier: str
    tier_label: str
    tier_range: str
    submission_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TraderProfileResponse(BaseModel):
    subject_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    current_stats: Optional[PublishedStatsResponse] = None
    stats_by_window: Dict[str, PublishedStatsResponse] = {}
    recent_submissions: List[SubmissionResponse] = []
    has_pending_submission: bool = False


class TraderEnvelope(BaseModel):
    success: bool = True
    data: TraderProfileResponse
