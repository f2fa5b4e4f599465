"""Decision scoring core package"""

from src.core.decision.choices import (
    VetoDecision,
    VoteDecision,
    choose_eviction_vote,
    choose_finalist,
    choose_nominees,
    choose_replacement_nominee,
    decide_veto,
    eligible_replacements,
    validate_replacement,
    validate_veto_save,
)
from src.core.decision.scoring import (
    DecisionFactors,
    TraitWeights,
    get_trait_weights,
    score_candidate,
)
from src.core.decision.threat import (
    ThreatBreakdown,
    assess_threat,
    get_threat_description,
    is_major_threat,
    rank_by_threat,
)

__all__ = [
    "VetoDecision",
    "VoteDecision",
    "choose_eviction_vote",
    "choose_finalist",
    "choose_nominees",
    "choose_replacement_nominee",
    "decide_veto",
    "eligible_replacements",
    "validate_replacement",
    "validate_veto_save",
    "DecisionFactors",
    "TraitWeights",
    "get_trait_weights",
    "score_candidate",
    "ThreatBreakdown",
    "assess_threat",
    "get_threat_description",
    "is_major_threat",
    "rank_by_threat",
]
