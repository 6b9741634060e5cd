"""
Leaderboard Domain ORM Models.

============================================================
PURPOSE
============================================================
Models for self-reported performance submissions and the
published statistics projected from approved submissions.

============================================================
DATA LIFECYCLE ROLE
============================================================
- submissions: created PENDING by the subject, mutated exactly
  once by the review coordinator (APPROVED or REJECTED)
- published_stats: one row per (subject, window), replaced in
  place on every approval, never appended

============================================================
MODELS
============================================================
- Submission: One self-reported performance claim
- PublishedStats: Currently visible record per subject/window

============================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from leaderboard.tiers import get_tier_info
from leaderboard.types import SubmissionStatus, Tier, TimeWindow
from storage.models.base import Base, TimestampMixin


JSONType = JSON().with_variant(JSONB(), "postgresql")


class Submission(Base):
    """
    Self-reported trading performance awaiting or past review.

    ============================================================
    MUTABILITY
    ============================================================
    Figures are immutable after creation. Only the review
    columns (status, reviewer_note, reviewed_at, reviewed_by)
    change, exactly once, through a guarded update.

    Tier is deliberately not stored here; it is derived from
    volume at publish time.
    ============================================================
    """

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique submission identifier"
    )

    subject_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Submitting user"
    )

    # Reported figures
    exchange: Mapped[str] = mapped_column(String(20), nullable=False)
    monthly_pnl_pct: Mapped[float] = mapped_column(Float, nullable=False)
    total_pnl_usd: Mapped[float] = mapped_column(Float, nullable=False)
    win_rate_pct: Mapped[float] = mapped_column(Float, nullable=False)
    volume_usd: Mapped[float] = mapped_column(Float, nullable=False)

    # Proof
    proof_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    proof_links: Mapped[List[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Ordered list of proof URLs"
    )

    # Review
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubmissionStatus.PENDING.value,
    )
    reviewer_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Submission time (UTC)"
    )

    __table_args__ = (
        Index("idx_submissions_status_created", "status", "created_at"),
        Index("idx_submissions_subject_created", "subject_id", "created_at"),
    )

    @property
    def status_enum(self) -> SubmissionStatus:
        return SubmissionStatus(self.status)

    def __repr__(self) -> str:
        return f"<Submission id={self.id} subject={self.subject_id} status={self.status}>"


class PublishedStats(Base, TimestampMixin):
    """
    Published performance record for one subject in one window.

    ============================================================
    INVARIANT
    ============================================================
    At most one row per (subject_id, time_window), enforced by
    uq_published_stats_subject_window. Rows are created or fully
    overwritten by the stats publisher only.
    ============================================================
    """

    __tablename__ = "published_stats"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Stable identity, final ranking tie-break"
    )

    subject_id: Mapped[str] = mapped_column(String(100), nullable=False)
    time_window: Mapped[str] = mapped_column(String(20), nullable=False)

    exchange: Mapped[str] = mapped_column(String(20), nullable=False)
    monthly_pnl_pct: Mapped[float] = mapped_column(Float, nullable=False)
    total_pnl_usd: Mapped[float] = mapped_column(Float, nullable=False)
    win_rate_pct: Mapped[float] = mapped_column(Float, nullable=False)
    volume_usd: Mapped[float] = mapped_column(Float, nullable=False)
    tier: Mapped[str] = mapped_column(String(20), nullable=False)

    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("submissions.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Submission whose figures this row shows"
    )

    __table_args__ = (
        UniqueConstraint("subject_id", "time_window", name="uq_published_stats_subject_window"),
        Index(
            "idx_published_stats_ranking",
            "time_window",
            "monthly_pnl_pct",
            "total_pnl_usd",
            "created_at",
        ),
        Index("idx_published_stats_window_tier", "time_window", "tier"),
    )

    @property
    def tier_label(self) -> str:
        return get_tier_info(Tier(self.tier)).label

    @property
    def tier_range(self) -> str:
        return get_tier_info(Tier(self.tier)).range_text

    @property
    def window_label(self) -> str:
        return TimeWindow(self.time_window).label

    def __repr__(self) -> str:
        return (
            f"<PublishedStats subject={self.subject_id} window={self.time_window} "
            f"tier={self.tier} pnl%={self.monthly_pnl_pct}>"
        )


__all__ = [
    "Submission",
    "PublishedStats",
]
