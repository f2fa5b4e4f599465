"""Relationship tiers and milestone detection

The tier is never stored; it is always recomputed from the current score.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from src.core.relationship.calculations import clamp_score
from src.core.relationship.models import RelationshipTier


@dataclass(frozen=True)
class TierInfo:
    """Display data for a tier"""

    tier: RelationshipTier
    upper_bound: Optional[float]  # exclusive; None = no upper bound
    label: str


# (tier, exclusive upper bound) evaluated top to bottom, first match wins
RELATIONSHIP_TIERS: List[TierInfo] = [
    TierInfo(RelationshipTier.ENEMY, -50.0, "Enemy"),
    TierInfo(RelationshipTier.RIVAL, -20.0, "Rival"),
    TierInfo(RelationshipTier.STRANGER, 25.0, "Stranger"),
    TierInfo(RelationshipTier.ACQUAINTANCE, 50.0, "Acquaintance"),
    TierInfo(RelationshipTier.FRIEND, 75.0, "Friend"),
    TierInfo(RelationshipTier.CLOSE_FRIEND, 90.0, "Close Friend"),
    TierInfo(RelationshipTier.ALLY, None, "Ally"),
]

MILESTONE_THRESHOLDS: Tuple[int, ...] = (25, 50, 75)


@dataclass(frozen=True)
class MilestoneInfo:
    """What crossing a threshold means"""

    threshold: int
    from_tier: RelationshipTier
    to_tier: RelationshipTier
    celebration: str  # toast | celebration | confetti
    message: str
    unlocked_deals: Tuple[str, ...]


MILESTONE_INFO: Dict[int, MilestoneInfo] = {
    25: MilestoneInfo(
        threshold=25,
        from_tier=RelationshipTier.STRANGER,
        to_tier=RelationshipTier.ACQUAINTANCE,
        celebration="toast",
        message="You are now Acquaintances!",
        unlocked_deals=("information_sharing",),
    ),
    50: MilestoneInfo(
        threshold=50,
        from_tier=RelationshipTier.ACQUAINTANCE,
        to_tier=RelationshipTier.FRIEND,
        celebration="celebration",
        message="You are now Friends!",
        unlocked_deals=("safety_agreement", "vote_together"),
    ),
    75: MilestoneInfo(
        threshold=75,
        from_tier=RelationshipTier.FRIEND,
        to_tier=RelationshipTier.CLOSE_FRIEND,
        celebration="confetti",
        message="You are now Close Friends!",
        unlocked_deals=("partnership", "final_two", "alliance_invite"),
    ),
}


def get_tier_for_score(score: float) -> TierInfo:
    """Tier lookup. Depends on the score only."""
    clamped = clamp_score(score)
    for info in RELATIONSHIP_TIERS:
        if info.upper_bound is None or clamped < info.upper_bound:
            return info
    return RELATIONSHIP_TIERS[-1]


def check_milestone_crossing(old_score: float, new_score: float) -> Optional[int]:
    """Lowest threshold T with old < T <= new, or None."""
    for threshold in MILESTONE_THRESHOLDS:
        if old_score < threshold <= new_score:
            return threshold
    return None


def get_milestone_info(threshold: int) -> MilestoneInfo:
    return MILESTONE_INFO[threshold]
