"""
Leaderboard - Domain Types.

============================================================
PURPOSE
============================================================
Enumerations shared by the storage layer, the review pipeline
and the ranking read path. Values are the strings persisted in
the database and exchanged over the API.

============================================================
"""

from enum import Enum


class SubmissionStatus(str, Enum):
    """Lifecycle of a performance submission."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED)


class ReviewDecision(str, Enum):
    """A reviewer's judgment on a pending submission."""

    APPROVE = "approve"
    REJECT = "reject"

    @property
    def target_status(self) -> SubmissionStatus:
        if self is ReviewDecision.APPROVE:
            return SubmissionStatus.APPROVED
        return SubmissionStatus.REJECTED


class Tier(str, Enum):
    """Volume band, ordered lowest to highest."""

    DOLPHIN = "DOLPHIN"
    SHARK = "SHARK"
    WHALE = "WHALE"


class TimeWindow(str, Enum):
    """Reporting period of a published record."""

    THIS_MONTH = "THIS_MONTH"
    THREE_MONTHS = "THREE_MONTHS"
    SIX_MONTHS = "SIX_MONTHS"
    YTD = "YTD"
    ALL_TIME = "ALL_TIME"

    @property
    def label(self) -> str:
        return WINDOW_LABELS[self]


WINDOW_LABELS = {
    TimeWindow.THIS_MONTH: "This Month",
    TimeWindow.THREE_MONTHS: "3M",
    TimeWindow.SIX_MONTHS: "6M",
    TimeWindow.YTD: "YTD",
    TimeWindow.ALL_TIME: "All-Time",
}

# The review pipeline only ever publishes here.
CURRENT_WINDOW = TimeWindow.THIS_MONTH


class Exchange(str, Enum):
    """Venue the reported figures come from."""

    BINANCE = "BINANCE"
    BYBIT = "BYBIT"
    OKX = "OKX"
    COINBASE = "COINBASE"
    KRAKEN = "KRAKEN"
    OTHER = "OTHER"


__all__ = [
    "SubmissionStatus",
    "ReviewDecision",
    "Tier",
    "TimeWindow",
    "WINDOW_LABELS",
    "CURRENT_WINDOW",
    "Exchange",
]
