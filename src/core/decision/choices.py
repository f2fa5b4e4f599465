"""AI houseguest choices: eviction vote, nominations, veto, replacement, finalist

One implementation per decision. Ties break on the lowest houseguest id.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.core.alliance.stability import are_allied
from src.core.decision.scoring import ThreatFn, TraitWeights, score_candidate
from src.core.errors import InvalidSelectionError
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest, PersonalityTrait
from src.core.relationship.store import RelationshipStore

DEFAULT_VETO_THRESHOLD = 30.0
LOYAL_VETO_THRESHOLD = 10.0


@dataclass
class VoteDecision:
    voter_id: str
    evict_id: str
    scores: Dict[str, float] = field(default_factory=dict)


@dataclass
class VetoDecision:
    use_veto: bool
    save_id: Optional[str] = None
    scores: Dict[str, float] = field(default_factory=dict)
    reason: str = ""


def _relationship(
    a: str, b: str, snapshot: Optional[GameSnapshot], store: Optional[RelationshipStore]
) -> float:
    if snapshot is not None:
        return snapshot.relationship(a, b)
    if store is not None:
        return store.get_relationship(a, b)
    return 0.0


def choose_eviction_vote(
    voter: Houseguest,
    nominees: List[Houseguest],
    snapshot: Optional[GameSnapshot] = None,
    threat_fn: Optional[ThreatFn] = None,
    store: Optional[RelationshipStore] = None,
    base_weights: Optional[TraitWeights] = None,
) -> VoteDecision:
    """Vote to evict the nominee the voter least wants to keep."""
    if not nominees:
        raise ValueError("No nominees to vote on")
    scores = {
        n.id: score_candidate(voter, n, snapshot, threat_fn, store, base_weights)
        for n in nominees
    }
    evict_id = min(scores, key=lambda hid: (scores[hid], hid))
    return VoteDecision(voter_id=voter.id, evict_id=evict_id, scores=scores)


def choose_nominees(
    hoh: Houseguest,
    snapshot: GameSnapshot,
    count: int = 2,
    threat_fn: Optional[ThreatFn] = None,
    base_weights: Optional[TraitWeights] = None,
) -> List[str]:
    """The HoH puts up the houseguests it least wants to keep."""
    candidates = [h for h in snapshot.active_houseguests() if h.id != hoh.id]
    ranked = sorted(
        candidates,
        key=lambda h: (
            score_candidate(hoh, h, snapshot, threat_fn, base_weights=base_weights),
            h.id,
        ),
    )
    return [h.id for h in ranked[:count]]


def decide_veto(
    pov_holder: Houseguest,
    nominees: List[Houseguest],
    snapshot: Optional[GameSnapshot] = None,
    store: Optional[RelationshipStore] = None,
    threshold: float = DEFAULT_VETO_THRESHOLD,
) -> VetoDecision:
    """Use the veto on the best-liked nominee if the bond is strong enough.

    A nominated holder always saves themselves. Otherwise the veto is used
    when the best-liked nominee's relationship beats the threshold, or a
    Loyal holder likes them a little, or the two share an active alliance.
    """
    if any(n.id == pov_holder.id for n in nominees):
        return VetoDecision(
            use_veto=True, save_id=pov_holder.id, reason="Saving myself"
        )

    scores = {n.id: _relationship(pov_holder.id, n.id, snapshot, store) for n in nominees}
    if not scores:
        return VetoDecision(use_veto=False, reason="No nominees")

    best_id = min(scores, key=lambda hid: (-scores[hid], hid))
    best = scores[best_id]
    if best > threshold:
        return VetoDecision(True, best_id, scores, "Close enough to save")
    if pov_holder.has_trait(PersonalityTrait.LOYAL) and best > LOYAL_VETO_THRESHOLD:
        return VetoDecision(True, best_id, scores, "Loyal to a friend on the block")

    if snapshot is not None:
        allied = [hid for hid in scores if are_allied(snapshot.alliances, pov_holder.id, hid)]
        if allied:
            save_id = min(allied, key=lambda hid: (-scores[hid], hid))
            return VetoDecision(True, save_id, scores, "Protecting an alliance member")

    return VetoDecision(False, None, scores, "Keeping nominations the same")


def eligible_replacements(
    snapshot: GameSnapshot, saved_id: Optional[str] = None
) -> List[Houseguest]:
    """Active houseguests who can go up after a veto."""
    return [
        h
        for h in snapshot.active_houseguests()
        if not h.is_hoh
        and not h.is_nominated
        and not h.is_pov_holder
        and h.id != saved_id
    ]


def choose_replacement_nominee(
    hoh: Houseguest,
    snapshot: GameSnapshot,
    saved_id: Optional[str] = None,
) -> Optional[str]:
    """Eligible houseguest with the worst relationship to the HoH."""
    eligible = [h for h in eligible_replacements(snapshot, saved_id) if h.id != hoh.id]
    if not eligible:
        return None
    pick = min(eligible, key=lambda h: (snapshot.relationship(hoh.id, h.id), h.id))
    return pick.id


def validate_replacement(
    snapshot: GameSnapshot, candidate_id: str, saved_id: Optional[str] = None
) -> Houseguest:
    candidate = snapshot.get_houseguest(candidate_id)
    if candidate is None:
        raise InvalidSelectionError(candidate_id, "unknown houseguest")
    if not candidate.is_active:
        raise InvalidSelectionError(candidate_id, "not an active houseguest")
    if candidate.is_hoh:
        raise InvalidSelectionError(candidate_id, "the HoH cannot be nominated")
    if candidate.is_pov_holder:
        raise InvalidSelectionError(candidate_id, "the veto holder cannot be nominated")
    if candidate.is_nominated:
        raise InvalidSelectionError(candidate_id, "already nominated")
    if candidate_id == saved_id:
        raise InvalidSelectionError(candidate_id, "was just saved by the veto")
    return candidate


def validate_veto_save(snapshot: GameSnapshot, save_id: str) -> Houseguest:
    nominee = snapshot.get_houseguest(save_id)
    if nominee is None:
        raise InvalidSelectionError(save_id, "unknown houseguest")
    if not nominee.is_active or not nominee.is_nominated:
        raise InvalidSelectionError(save_id, "not on the block")
    return nominee


def choose_finalist(
    hoh: Houseguest,
    candidates: List[Houseguest],
    snapshot: Optional[GameSnapshot] = None,
    threat_fn: Optional[ThreatFn] = None,
    base_weights: Optional[TraitWeights] = None,
) -> str:
    """The final HoH takes the houseguest it most wants to keep."""
    if not candidates:
        raise ValueError("No finalists to choose from")
    scores = {
        c.id: score_candidate(hoh, c, snapshot, threat_fn, base_weights=base_weights)
        for c in candidates
    }
    return min(scores, key=lambda hid: (-scores[hid], hid))
