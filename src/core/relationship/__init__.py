"""Relationship core package - public API"""

from src.core.relationship.models import (
    Relationship,
    RelationshipDelta,
    RelationshipEvent,
    RelationshipEventType,
    RelationshipTier,
    pair_key,
)
from src.core.relationship.calculations import (
    RELATIONSHIP_MAX,
    RELATIONSHIP_MIN,
    apply_change,
    clamp_score,
    clamp_unit,
    event_trust_step,
)
from src.core.relationship.tiers import (
    MILESTONE_INFO,
    MILESTONE_THRESHOLDS,
    RELATIONSHIP_TIERS,
    MilestoneInfo,
    TierInfo,
    check_milestone_crossing,
    get_milestone_info,
    get_tier_for_score,
)
from src.core.relationship.store import (
    InMemoryRelationshipStore,
    RelationshipStore,
    apply_delta,
)

__all__ = [
    "Relationship",
    "RelationshipDelta",
    "RelationshipEvent",
    "RelationshipEventType",
    "RelationshipTier",
    "pair_key",
    "RELATIONSHIP_MAX",
    "RELATIONSHIP_MIN",
    "apply_change",
    "clamp_score",
    "clamp_unit",
    "event_trust_step",
    "MILESTONE_INFO",
    "MILESTONE_THRESHOLDS",
    "RELATIONSHIP_TIERS",
    "MilestoneInfo",
    "TierInfo",
    "check_milestone_crossing",
    "get_milestone_info",
    "get_tier_for_score",
    "InMemoryRelationshipStore",
    "RelationshipStore",
    "apply_delta",
]
