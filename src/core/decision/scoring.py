"""Decision scoring

score_candidate answers one question: how much does the voter want to
keep (favor) the candidate? Higher means keep. Votes, nominations, veto
and replacement choices all rank houseguests by this number.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from src.core.deal.models import DealStatus, DealType
from src.core.decision.threat import assess_threat
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest, trait_value
from src.core.relationship.store import RelationshipStore

ThreatFn = Callable[[Houseguest, Houseguest, Optional[GameSnapshot]], float]

DEFAULT_THREAT_WEIGHT = 0.25
DEFAULT_LOYALTY_WEIGHT = 0.2
DEFAULT_RELATIONSHIP_WEIGHT = 0.3
DEFAULT_PROMISE_WEIGHT = 0.15
DEFAULT_STRATEGIC_WEIGHT = 0.1

OPPOSING_TRAITS = (
    ("Loyal", "Sneaky"),
    ("Confrontational", "Floater"),
    ("Strategic", "Emotional"),
    ("Competitive", "Social"),
)

# obligations the voter took on toward the candidate
OBLIGATION_BY_DEAL = {
    DealType.SAFETY_AGREEMENT: 30.0,
    DealType.VOTE_TOGETHER: 20.0,
    DealType.ALLIANCE_INVITE: 15.0,
    DealType.PARTNERSHIP: 15.0,
}
DEFAULT_OBLIGATION = 10.0
RECEIVED_PROMISE = 10.0
BROKEN_BY_CANDIDATE = -25.0


@dataclass
class TraitWeights:
    threat: float = DEFAULT_THREAT_WEIGHT
    loyalty: float = DEFAULT_LOYALTY_WEIGHT
    relationship: float = DEFAULT_RELATIONSHIP_WEIGHT
    promise: float = DEFAULT_PROMISE_WEIGHT
    strategic: float = DEFAULT_STRATEGIC_WEIGHT

    @property
    def total(self) -> float:
        return self.threat + self.loyalty + self.relationship + self.promise + self.strategic


# trait -> (threat, loyalty, relationship, promise, strategic) nudges
TRAIT_WEIGHT_NUDGES = {
    "Strategic": (0.15, 0.0, -0.1, 0.0, 0.1),
    "Loyal": (-0.1, 0.2, 0.0, 0.15, 0.0),
    "Competitive": (0.1, 0.0, 0.0, 0.0, 0.05),
    "Emotional": (-0.15, 0.0, 0.2, 0.0, 0.0),
    "Sneaky": (0.0, -0.15, 0.0, -0.1, 0.15),
    "Confrontational": (0.0, -0.1, 0.1, 0.0, 0.0),
    "Paranoid": (0.2, -0.15, 0.0, 0.0, 0.0),
    "Floater": (-0.1, -0.1, 0.1, 0.0, 0.0),
    "Analytical": (0.1, 0.0, -0.1, 0.0, 0.1),
}


@dataclass
class DecisionFactors:
    relationship: float  # -100~100
    threat_level: float  # 0~100
    alliance_loyalty: float  # 0~100
    promise_obligations: float  # -30~30
    strategic_value: float  # 0~100
    personality_bias: float  # -20~20


def get_trait_weights(
    traits: Iterable[str], base: Optional[TraitWeights] = None
) -> TraitWeights:
    """Base weights nudged per trait, then normalised to sum 1."""
    base = base or TraitWeights()
    w = TraitWeights(
        threat=base.threat,
        loyalty=base.loyalty,
        relationship=base.relationship,
        promise=base.promise,
        strategic=base.strategic,
    )
    for trait in traits:
        nudge = TRAIT_WEIGHT_NUDGES.get(trait_value(trait))
        if nudge is None:
            continue
        w.threat += nudge[0]
        w.loyalty += nudge[1]
        w.relationship += nudge[2]
        w.promise += nudge[3]
        w.strategic += nudge[4]

    total = w.total
    if total > 0:
        w.threat /= total
        w.loyalty /= total
        w.relationship /= total
        w.promise /= total
        w.strategic /= total
    return w


def alliance_loyalty(snapshot: GameSnapshot, evaluator_id: str, target_id: str) -> float:
    score = 0.0
    for alliance in snapshot.alliances:
        if not (
            alliance.is_active
            and alliance.has_member(evaluator_id)
            and alliance.has_member(target_id)
        ):
            continue
        size = len(alliance.member_ids)
        score += min(size * 10, 50)
        # small alliances are tighter
        if size <= 3:
            score += 20
    return min(100.0, score)


def promise_obligations(snapshot: GameSnapshot, evaluator_id: str, target_id: str) -> float:
    score = 0.0
    for deal in snapshot.deals:
        if not deal.is_between(evaluator_id, target_id):
            continue
        if deal.status in (DealStatus.PENDING, DealStatus.ACTIVE):
            if deal.proposer_id == evaluator_id:
                score += OBLIGATION_BY_DEAL.get(deal.type, DEFAULT_OBLIGATION)
            else:
                score += RECEIVED_PROMISE
        elif deal.status == DealStatus.BROKEN and deal.proposer_id == target_id:
            score += BROKEN_BY_CANDIDATE
    return max(-30.0, min(30.0, score))


def strategic_value(evaluator: Houseguest, target: Houseguest) -> float:
    value = 50.0
    # a bigger target shields the evaluator
    if target.competitions_won.total_power > evaluator.competitions_won.total_power:
        value += 15
    if target.stats.competition >= 7:
        value += 10
    # strong social game beats you at the jury
    if target.stats.social >= 8:
        value -= 10
    return max(0.0, min(100.0, value))


def personality_bias(evaluator: Houseguest, target: Houseguest) -> float:
    mine = {trait_value(t) for t in evaluator.traits}
    theirs = {trait_value(t) for t in target.traits}
    bias = len(mine & theirs) * 5.0
    for first, second in OPPOSING_TRAITS:
        if (first in mine and second in theirs) or (second in mine and first in theirs):
            bias -= 5
    return max(-20.0, min(20.0, bias))


def decision_factors(
    voter: Houseguest,
    candidate: Houseguest,
    snapshot: GameSnapshot,
    threat_fn: ThreatFn,
) -> DecisionFactors:
    return DecisionFactors(
        relationship=snapshot.relationship(voter.id, candidate.id),
        threat_level=threat_fn(voter, candidate, snapshot),
        alliance_loyalty=alliance_loyalty(snapshot, voter.id, candidate.id),
        promise_obligations=promise_obligations(snapshot, voter.id, candidate.id),
        strategic_value=strategic_value(voter, candidate),
        personality_bias=personality_bias(voter, candidate),
    )


def weighted_score(factors: DecisionFactors, weights: TraitWeights) -> float:
    score = factors.relationship * weights.relationship
    score -= factors.threat_level * weights.threat
    score += factors.alliance_loyalty * weights.loyalty
    score += factors.promise_obligations * weights.promise
    score += factors.strategic_value * weights.strategic * 0.5
    score += factors.personality_bias
    return score


def score_candidate(
    voter: Houseguest,
    candidate: Houseguest,
    snapshot: Optional[GameSnapshot] = None,
    threat_fn: Optional[ThreatFn] = None,
    store: Optional[RelationshipStore] = None,
    base_weights: Optional[TraitWeights] = None,
) -> float:
    """Keep-score the voter gives the candidate.

    Without a snapshot only the raw relationship is known (0 without a store).
    """
    if snapshot is None:
        return store.get_relationship(voter.id, candidate.id) if store else 0.0

    if threat_fn is None:
        threat_fn = assess_threat
    factors = decision_factors(voter, candidate, snapshot, threat_fn)
    return weighted_score(factors, get_trait_weights(voter.traits, base_weights))
