"""
Leaderboard - Tier Classifier.

Maps a trading-volume figure to a tier. Pure and total: every
number, including zero and negatives, has exactly one tier.
Thresholds are closed on the lower end.
"""

from dataclasses import dataclass
from typing import Dict

from .types import Tier


# Lower bounds, USD volume
SHARK_MIN_VOLUME = 50_000
WHALE_MIN_VOLUME = 250_000


@dataclass(frozen=True)
class TierInfo:
    """Display metadata for a tier."""

    tier: Tier
    label: str
    range_text: str
    min_volume: float


TIER_INFO: Dict[Tier, TierInfo] = {
    Tier.WHALE: TierInfo(Tier.WHALE, "Whale", "$250k+", WHALE_MIN_VOLUME),
    Tier.SHARK: TierInfo(Tier.SHARK, "Shark", "$50-250k", SHARK_MIN_VOLUME),
    Tier.DOLPHIN: TierInfo(Tier.DOLPHIN, "Dolphin", "<$50k", 0),
}


def classify(volume_usd: float) -> Tier:
    """Return the tier for a volume figure."""
    if volume_usd >= WHALE_MIN_VOLUME:
        return Tier.WHALE
    if volume_usd >= SHARK_MIN_VOLUME:
        return Tier.SHARK
    return Tier.DOLPHIN


def get_tier_info(tier: Tier) -> TierInfo:
    return TIER_INFO[tier]


__all__ = [
    "SHARK_MIN_VOLUME",
    "WHALE_MIN_VOLUME",
    "TierInfo",
    "TIER_INFO",
    "classify",
    "get_tier_info",
]
