"""Relationship domain models

Pure dataclasses, no DB dependency.
Edges are symmetric: (a, b) and (b, a) name the same relationship.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class RelationshipTier(str, Enum):
    """Tier ladder, derived from score only"""

    ENEMY = "enemy"
    RIVAL = "rival"
    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    FRIEND = "friend"
    CLOSE_FRIEND = "close_friend"
    ALLY = "ally"


class RelationshipEventType(str, Enum):
    """Event kinds recorded on a relationship"""

    CONVERSATION = "conversation"
    KEPT_PROMISE = "kept_promise"
    BETRAYAL = "betrayal"
    SAVED = "saved"
    NOMINATED = "nominated"
    ALLIANCE_FORMED = "alliance_formed"
    ALLIANCE_BETRAYED = "alliance_betrayed"
    DEAL_MADE = "deal_made"
    DEAL_DECLINED = "deal_declined"
    DEAL_FULFILLED = "deal_fulfilled"
    DEAL_BROKEN = "deal_broken"
    HEARD_ABOUT_BETRAYAL = "heard_about_betrayal"
    POSITIVE_CONNECTION = "positive_connection"
    NEGATIVE_INTERACTION = "negative_interaction"


def pair_key(a: str, b: str) -> Tuple[str, str]:
    """Canonical ordering for an unordered houseguest pair."""
    return (a, b) if a <= b else (b, a)


@dataclass
class RelationshipEvent:
    """A significant thing that happened between two houseguests"""

    event_type: str
    description: str
    impact_score: float
    decayable: bool = True
    week: int = 0


@dataclass
class Relationship:
    """Relationship between two houseguests"""

    guest_a: str
    guest_b: str
    score: float = 0.0  # -100 ~ +100
    notes: List[str] = field(default_factory=list)
    events: List[RelationshipEvent] = field(default_factory=list)

    @property
    def tier(self) -> RelationshipTier:
        # late import: tiers imports this module
        from src.core.relationship.tiers import get_tier_for_score

        return get_tier_for_score(self.score).tier

    def other(self, houseguest_id: str) -> Optional[str]:
        if houseguest_id == self.guest_a:
            return self.guest_b
        if houseguest_id == self.guest_b:
            return self.guest_a
        return None


@dataclass
class RelationshipDelta:
    """A requested score change. Core returns these, services apply them."""

    guest_a: str
    guest_b: str
    change: float
    event_type: str = RelationshipEventType.CONVERSATION.value
    description: str = ""
    decayable: bool = True
