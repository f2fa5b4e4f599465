"""Trust aggregation

Trust is never stored. It is recomputed on every query from deal history,
interactions, alliance loyalty and personality traits.

Weights: deals 40%, interactions 30%, alliance 20%, traits 10%.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from src.core.alliance.models import Alliance, AllianceStatus
from src.core.deal.models import Deal, DealStatus, TrustImpact
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import trait_value
from src.core.relationship.calculations import clamp_unit, event_trust_step

TRUST_WEIGHTS: Dict[str, float] = {
    "deals": 0.4,
    "interactions": 0.3,
    "alliance": 0.2,
    "traits": 0.1,
}

FULFILLED_TRUST: Dict[TrustImpact, float] = {
    TrustImpact.MINOR: 3,
    TrustImpact.MEDIUM: 5,
    TrustImpact.HIGH: 10,
    TrustImpact.CRITICAL: 15,
}
BROKEN_TRUST: Dict[TrustImpact, float] = {
    TrustImpact.MINOR: 6,
    TrustImpact.MEDIUM: 12,
    TrustImpact.HIGH: 20,
    TrustImpact.CRITICAL: 30,
}

TRAIT_TRUST_MODIFIERS: Dict[str, float] = {
    "Loyal": 15,
    "Sneaky": -10,
    "Strategic": -5,
    "Emotional": 5,
    "Competitive": -3,
    "Analytical": -2,
    "Floater": -5,
    "Confrontational": 3,
}
TRAIT_MODIFIER_LIMIT = 20.0

ALLIANCE_BETRAYAL_PENALTY = 20.0
ALLIANCE_STABILITY_FACTOR = 0.3

# (minimum score, label), first match wins
REPUTATION_LABELS = [
    (85, "Highly Trustworthy"),
    (70, "Trustworthy"),
    (55, "Reliable"),
    (45, "Neutral"),
    (35, "Questionable"),
    (20, "Untrustworthy"),
]
LOWEST_REPUTATION = "Notorious Backstabber"
UNKNOWN_REPUTATION = "Unknown"


@dataclass
class TrustFactors:
    deal_trust: float = 50.0  # 0~100
    interaction_trust: float = 50.0  # 0~100
    alliance_trust: float = 50.0  # 0~100
    trait_modifier: float = 0.0  # -20~20


@dataclass
class TrustScore:
    score: int
    reputation: str
    factors: TrustFactors = field(default_factory=TrustFactors)


def deal_trust(deals: Iterable[Deal], subject_id: str) -> float:
    """50, plus fulfilled, minus broken, scaled by impact class."""
    score = 50.0
    for deal in deals:
        if not deal.involves(subject_id):
            continue
        if deal.status == DealStatus.FULFILLED:
            score += FULFILLED_TRUST[deal.trust_impact]
        elif deal.status == DealStatus.BROKEN:
            score -= BROKEN_TRUST[deal.trust_impact]
    return clamp_unit(score)


def interaction_trust(
    snapshot: GameSnapshot, subject_id: str, from_perspective_of: Optional[str]
) -> float:
    if from_perspective_of is None:
        return 50.0
    if snapshot.interactions is not None:
        return clamp_unit(
            snapshot.interactions.get_trust_score(from_perspective_of, subject_id)
        )

    score = 50.0
    for event in snapshot.relationships.get_events(subject_id, from_perspective_of):
        score += event_trust_step(event.event_type, event.impact_score)
    return clamp_unit(score)


def alliance_trust(alliances: Iterable[Alliance], subject_id: str) -> float:
    alliances = list(alliances)
    score = 50.0
    betrayed = [
        a
        for a in alliances
        if a.status != AllianceStatus.ACTIVE and subject_id in a.dissolved_by
    ]
    score -= ALLIANCE_BETRAYAL_PENALTY * len(betrayed)

    current = [a for a in alliances if a.is_active and a.has_member(subject_id)]
    if current:
        avg_stability = sum(a.stability for a in current) / len(current)
        score += (avg_stability - 50) * ALLIANCE_STABILITY_FACTOR
    return clamp_unit(score)


def trait_trust_modifier(traits: Iterable[str]) -> float:
    total = sum(TRAIT_TRUST_MODIFIERS.get(trait_value(t), 0) for t in traits)
    return max(-TRAIT_MODIFIER_LIMIT, min(TRAIT_MODIFIER_LIMIT, float(total)))


def get_reputation_label(score: float) -> str:
    for minimum, label in REPUTATION_LABELS:
        if score >= minimum:
            return label
    return LOWEST_REPUTATION


def compute_trust(
    snapshot: Optional[GameSnapshot],
    subject_id: str,
    from_perspective_of: Optional[str] = None,
) -> TrustScore:
    """Composite 0~100 trust score for a houseguest.

    Without a snapshot the answer is a neutral 50, "Unknown".
    """
    if snapshot is None:
        return TrustScore(score=50, reputation=UNKNOWN_REPUTATION)

    subject = snapshot.get_houseguest(subject_id)
    factors = TrustFactors(
        deal_trust=deal_trust(snapshot.deals, subject_id),
        interaction_trust=interaction_trust(snapshot, subject_id, from_perspective_of),
        alliance_trust=alliance_trust(snapshot.alliances, subject_id),
        trait_modifier=trait_trust_modifier(subject.traits) if subject else 0.0,
    )

    raw = 50.0
    raw += (factors.deal_trust - 50) * TRUST_WEIGHTS["deals"]
    raw += (factors.interaction_trust - 50) * TRUST_WEIGHTS["interactions"]
    raw += (factors.alliance_trust - 50) * TRUST_WEIGHTS["alliance"]
    raw += factors.trait_modifier * TRUST_WEIGHTS["traits"]
    # half rounds up
    score = int(max(0, min(100, math.floor(raw + 0.5))))

    return TrustScore(score=score, reputation=get_reputation_label(score), factors=factors)


def get_trust_category(
    snapshot: Optional[GameSnapshot], subject_id: str
) -> str:
    """trustworthy / neutral / untrustworthy"""
    score = compute_trust(snapshot, subject_id).score
    if score >= 65:
        return "trustworthy"
    if score <= 35:
        return "untrustworthy"
    return "neutral"


@dataclass
class TrustComparison:
    first: TrustScore
    second: TrustScore
    more_trustworthy: str


def compare_trust(
    snapshot: Optional[GameSnapshot], first_id: str, second_id: str
) -> TrustComparison:
    """Ties go to the first houseguest."""
    first = compute_trust(snapshot, first_id)
    second = compute_trust(snapshot, second_id)
    winner = first_id if first.score >= second.score else second_id
    return TrustComparison(first=first, second=second, more_trustworthy=winner)
