"""
Published Stats Repository.

============================================================
PURPOSE
============================================================
Data access for the published-stats projection, keyed by
(subject_id, time_window).

============================================================
DATA LIFECYCLE
============================================================
- Mutability: REPLACE-IN-PLACE. ``upsert`` inserts the row or
  overwrites every figure of the existing one; created_at of
  the first publication is kept.
- Uniqueness: uq_published_stats_subject_window. PostgreSQL and
  SQLite use INSERT ... ON CONFLICT DO UPDATE; other dialects
  fall back to select-then-write and rely on the constraint to
  reject a concurrent duplicate insert.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, desc, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.leaderboard import PublishedStats
from storage.repositories.base import BaseRepository


_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# Columns overwritten when a (subject, window) row is replaced
_REPLACED_COLUMNS = (
    "exchange",
    "monthly_pnl_pct",
    "total_pnl_usd",
    "win_rate_pct",
    "volume_usd",
    "tier",
    "submission_id",
    "updated_at",
)


@dataclass(frozen=True)
class WindowSummary:
    """Aggregate figures over every record in a window."""
    total_pnl_usd: float
    avg_monthly_pnl_pct: float
    count: int


class PublishedStatsRepository(BaseRepository[PublishedStats]):
    """Repository for published statistics."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, PublishedStats, "PublishedStatsRepository")

    # =========================================================
    # WRITE OPERATIONS
    # =========================================================

    def upsert(
        self,
        subject_id: str,
        time_window: str,
        exchange: str,
        monthly_pnl_pct: float,
        total_pnl_usd: float,
        win_rate_pct: float,
        volume_usd: float,
        tier: str,
        submission_id: UUID,
        published_at: datetime,
    ) -> PublishedStats:
        """
        Create or fully replace the record for (subject, window).

        Returns:
            The stored row as it is after the write
        """
        values: Dict[str, Any] = {
            "subject_id": subject_id,
            "time_window": time_window,
            "exchange": exchange,
            "monthly_pnl_pct": monthly_pnl_pct,
            "total_pnl_usd": total_pnl_usd,
            "win_rate_pct": win_rate_pct,
            "volume_usd": volume_usd,
            "tier": tier,
            "submission_id": submission_id,
            "created_at": published_at,
            "updated_at": published_at,
        }

        dialect = self._session.get_bind().dialect.name
        insert_fn = _UPSERT_INSERTS.get(dialect)

        if insert_fn is not None:
            stmt = insert_fn(PublishedStats).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["subject_id", "time_window"],
                set_={col: stmt.excluded[col] for col in _REPLACED_COLUMNS},
            )
            self._execute_write(stmt, "upsert")
        else:
            self._select_then_write(values)

        row = self._get_for_update_result(subject_id, time_window)
        self._logger.info(
            f"Published stats: subject={subject_id} window={time_window} "
            f"tier={tier} submission={submission_id}"
        )
        return row

    def _select_then_write(self, values: Dict[str, Any]) -> None:
        existing = self.get(values["subject_id"], values["time_window"])
        if existing is None:
            self._add(PublishedStats(**values))
            return
        for col in _REPLACED_COLUMNS:
            setattr(existing, col, values[col])
        try:
            self._session.flush()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "upsert")
            raise

    def _get_for_update_result(self, subject_id: str, time_window: str) -> PublishedStats:
        stmt = (
            select(PublishedStats)
            .where(
                PublishedStats.subject_id == subject_id,
                PublishedStats.time_window == time_window,
            )
            .execution_options(populate_existing=True)
        )
        return self._execute_scalar(stmt)

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def get(self, subject_id: str, time_window: str) -> Optional[PublishedStats]:
        stmt = select(PublishedStats).where(
            PublishedStats.subject_id == subject_id,
            PublishedStats.time_window == time_window,
        )
        return self._execute_scalar(stmt)

    def list_for_subject(self, subject_id: str) -> List[PublishedStats]:
        """All windows for a subject, most recently updated first."""
        stmt = (
            select(PublishedStats)
            .where(PublishedStats.subject_id == subject_id)
            .order_by(desc(PublishedStats.updated_at), desc(PublishedStats.id))
        )
        return self._execute_query(stmt)

    def query(
        self,
        conditions: Sequence[Any],
        order_by: Sequence[Any],
        offset: int,
        limit: int,
    ) -> Tuple[List[PublishedStats], int]:
        """
        Filtered, ordered page of records plus the filtered total.

        Ordering is supplied by the caller; this method only applies it.
        """
        total = self._count(*conditions)
        stmt = (
            select(PublishedStats)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        return self._execute_query(stmt), total

    def summarize(self, time_window: str) -> WindowSummary:
        """Sum of total PnL, mean monthly PnL % and count for a window."""
        stmt = select(
            func.coalesce(func.sum(PublishedStats.total_pnl_usd), 0.0),
            func.coalesce(func.avg(PublishedStats.monthly_pnl_pct), 0.0),
            func.count(PublishedStats.id),
        ).where(PublishedStats.time_window == time_window)
        try:
            total, avg, count = self._session.execute(stmt).one()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "summarize", {"window": time_window})
            raise
        return WindowSummary(
            total_pnl_usd=float(total or 0),
            avg_monthly_pnl_pct=float(avg or 0),
            count=int(count or 0),
        )
