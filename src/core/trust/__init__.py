"""Trust core package"""

from src.core.trust.aggregator import (
    TRUST_WEIGHTS,
    TrustComparison,
    TrustFactors,
    TrustScore,
    alliance_trust,
    compare_trust,
    compute_trust,
    deal_trust,
    get_reputation_label,
    get_trust_category,
    interaction_trust,
    trait_trust_modifier,
)
from src.core.trust.interactions import (
    INTERACTION_DEFAULTS,
    InteractionSummary,
    InteractionTracker,
    InteractionType,
    TrackedInteraction,
)

__all__ = [
    "TRUST_WEIGHTS",
    "TrustComparison",
    "TrustFactors",
    "TrustScore",
    "alliance_trust",
    "compare_trust",
    "compute_trust",
    "deal_trust",
    "get_reputation_label",
    "get_trust_category",
    "interaction_trust",
    "trait_trust_modifier",
    "INTERACTION_DEFAULTS",
    "InteractionSummary",
    "InteractionTracker",
    "InteractionType",
    "TrackedInteraction",
]
