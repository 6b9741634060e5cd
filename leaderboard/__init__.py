"""
Leaderboard Package.

Tier classification, the published-stats projection and the
ranked read path.

Components:
- types: Status, decision, tier, window and exchange enumerations
- tiers: Volume to tier classifier
- config: Service configuration
- publisher: Create-or-replace published stats
- ranking: Ranked, paginated views plus window aggregates
- router: Public HTTP endpoints
"""

from .tiers import classify
from .types import (
    CURRENT_WINDOW,
    Exchange,
    ReviewDecision,
    SubmissionStatus,
    Tier,
    TimeWindow,
)

__all__ = [
    "classify",
    "CURRENT_WINDOW",
    "Exchange",
    "ReviewDecision",
    "SubmissionStatus",
    "Tier",
    "TimeWindow",
]
