"""Deal lifecycle: creation, status transitions, action evaluation, outcomes

Nothing here mutates the deals it is given. Transitions return copies,
outcomes come back as RelationshipDelta lists for a service to apply.
"""

import math
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from src.core.alliance.stability import STABILITY_ON_BROKEN, STABILITY_ON_FULFILLED
from src.core.deal.models import (
    DEAL_TYPE_INFO,
    Deal,
    DealContext,
    DealStatus,
    DealType,
    TrustImpact,
)
from src.core.errors import DealTransitionError
from src.core.game_state import GameSnapshot
from src.core.relationship.models import RelationshipDelta, RelationshipEventType

ALLOWED_TRANSITIONS: Dict[DealStatus, frozenset] = {
    DealStatus.PENDING: frozenset(
        {DealStatus.ACTIVE, DealStatus.DECLINED, DealStatus.EXPIRED}
    ),
    DealStatus.ACTIVE: frozenset(
        {DealStatus.FULFILLED, DealStatus.BROKEN, DealStatus.EXPIRED}
    ),
    DealStatus.FULFILLED: frozenset(),
    DealStatus.BROKEN: frozenset(),
    DealStatus.EXPIRED: frozenset(),
    DealStatus.DECLINED: frozenset(),
}

IMPACT_MULTIPLIER: Dict[TrustImpact, float] = {
    TrustImpact.MINOR: 1.0,
    TrustImpact.MEDIUM: 1.5,
    TrustImpact.HIGH: 2.0,
    TrustImpact.CRITICAL: 3.0,
}

FULFILLED_BASE = 8
BROKEN_BASE = -15
DEAL_MADE_BOOST = 8.0
DEAL_DECLINED_PENALTY = -3.0


class DealAction(str, Enum):
    NOMINATE = "NOMINATE"
    CAST_VOTE = "CAST_VOTE"
    VETO_DECISION = "VETO_DECISION"
    FINAL_SELECTION = "FINAL_SELECTION"


@dataclass
class DealOutcome:
    """What resolving a deal does to the house"""

    deal: Deal
    impact_score: int
    deltas: List[RelationshipDelta] = field(default_factory=list)
    alliance_stability_change: float = 0.0


def build_deal(
    deal_id: str,
    deal_type: DealType,
    proposer_id: str,
    recipient_id: str,
    week: int,
    context: Optional[DealContext] = None,
    target_name: Optional[str] = None,
    status: DealStatus = DealStatus.PENDING,
) -> Deal:
    """New deal with title, description and impact filled from DEAL_TYPE_INFO.

    vote_together only lasts for the week it was made.
    """
    info = DEAL_TYPE_INFO[deal_type]
    description = info.description
    if deal_type == DealType.TARGET_AGREEMENT and target_name:
        description = f"Target {target_name} if either wins HoH"
    return Deal(
        id=deal_id,
        type=deal_type,
        proposer_id=proposer_id,
        recipient_id=recipient_id,
        week=week,
        status=status,
        trust_impact=info.default_impact,
        title=info.title,
        description=description,
        context=context or DealContext(),
        expires_week=week if deal_type == DealType.VOTE_TOGETHER else None,
    )


def can_transition(old: DealStatus, new: DealStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[old]


def transition(deal: Deal, new_status: DealStatus) -> Deal:
    """Copy of the deal in its new status. Raises on illegal moves."""
    if not can_transition(deal.status, new_status):
        raise DealTransitionError(deal.id, deal.status.value, new_status.value)
    return replace(deal, status=new_status)


def expire_deals(deals: List[Deal], week: int) -> List[Deal]:
    """Active deals whose expiry week has passed, returned as expired copies."""
    expired: List[Deal] = []
    for deal in deals:
        if (
            deal.status == DealStatus.ACTIVE
            and deal.expires_week is not None
            and week > deal.expires_week
        ):
            expired.append(transition(deal, DealStatus.EXPIRED))
    return expired


# ── action evaluation ──────────────────────────────────────


def evaluate_deal_for_action(
    deal: Deal,
    action: DealAction,
    params: Mapping[str, Any],
    snapshot: Optional[GameSnapshot] = None,
) -> Optional[DealStatus]:
    """New status the action puts the deal into, or None if unaffected."""
    if not deal.is_active:
        return None
    if action == DealAction.NOMINATE:
        return _evaluate_nomination(deal, params)
    if action == DealAction.CAST_VOTE:
        return _evaluate_vote(deal, params, snapshot)
    if action == DealAction.VETO_DECISION:
        return _evaluate_veto(deal, params, snapshot)
    if action == DealAction.FINAL_SELECTION:
        return _evaluate_final_selection(deal, params)
    return None


def _evaluate_nomination(deal: Deal, params: Mapping[str, Any]) -> Optional[DealStatus]:
    nominator_id = params["nominator_id"]
    nominee_ids = list(params.get("nominee_ids", []))
    partner_id = deal.partner_of(nominator_id)
    if partner_id is None:
        return None

    if deal.type == DealType.TARGET_AGREEMENT and deal.context.target_houseguest_id:
        if deal.context.target_houseguest_id in nominee_ids:
            return DealStatus.FULFILLED
        if partner_id in nominee_ids:
            return DealStatus.BROKEN

    if deal.type == DealType.SAFETY_AGREEMENT and partner_id in nominee_ids:
        return DealStatus.BROKEN
    return None


def _evaluate_vote(
    deal: Deal, params: Mapping[str, Any], snapshot: Optional[GameSnapshot]
) -> Optional[DealStatus]:
    """vote_together resolves once both partners have voted.

    A partner on the block cannot vote. The deal then rests on the other
    partner's vote alone: evicting them breaks it, keeping them fulfils it.
    """
    if deal.type != DealType.VOTE_TOGETHER:
        return None
    votes: Mapping[str, str] = params.get("votes", {})
    for voter_id in (deal.proposer_id, deal.recipient_id):
        partner_id = deal.partner_of(voter_id)
        if voter_id in votes and _on_the_block(partner_id, votes, params, snapshot):
            return DealStatus.BROKEN if votes[voter_id] == partner_id else DealStatus.FULFILLED

    a = votes.get(deal.proposer_id)
    b = votes.get(deal.recipient_id)
    if a is None or b is None:
        return None
    return DealStatus.FULFILLED if a == b else DealStatus.BROKEN


def _on_the_block(
    houseguest_id: str,
    votes: Mapping[str, str],
    params: Mapping[str, Any],
    snapshot: Optional[GameSnapshot],
) -> bool:
    if houseguest_id in votes.values():
        return True
    if "nominee_ids" in params:
        return houseguest_id in params["nominee_ids"]
    if snapshot is not None:
        nominee = snapshot.get_houseguest(houseguest_id)
        return bool(nominee and nominee.is_nominated)
    return False


def _evaluate_veto(
    deal: Deal, params: Mapping[str, Any], snapshot: Optional[GameSnapshot]
) -> Optional[DealStatus]:
    if deal.type != DealType.VETO_USE:
        return None
    pov_holder_id = params["pov_holder_id"]
    partner_id = deal.partner_of(pov_holder_id)
    if partner_id is None:
        return None

    used = bool(params.get("used", False))
    saved_id = params.get("saved_id")
    if used and saved_id == partner_id:
        return DealStatus.FULFILLED

    if "nominee_ids" in params:
        partner_nominated = partner_id in params["nominee_ids"]
    elif snapshot is not None:
        partner = snapshot.get_houseguest(partner_id)
        partner_nominated = bool(partner and partner.is_nominated)
    else:
        partner_nominated = False
    return DealStatus.BROKEN if partner_nominated else None


def _evaluate_final_selection(
    deal: Deal, params: Mapping[str, Any]
) -> Optional[DealStatus]:
    if deal.type != DealType.FINAL_TWO:
        return None
    partner_id = deal.partner_of(params["selector_id"])
    if partner_id is None:
        return None
    if params.get("selected_id") == partner_id:
        return DealStatus.FULFILLED
    return DealStatus.BROKEN


# ── outcomes ───────────────────────────────────────────────


def outcome_deltas(
    deal: Deal,
    status: DealStatus,
    snapshot: Optional[GameSnapshot] = None,
    rng: Optional[random.Random] = None,
    spread_chance: float = 0.4,
    actor_id: Optional[str] = None,
) -> DealOutcome:
    """Relationship consequences of a deal being fulfilled or broken.

    actor_id is the houseguest whose action resolved the deal (defaults to
    the proposer). A broken deal can also leak: each other active houseguest
    hears about it with probability spread_chance and sours on the actor
    by 5~14.
    """
    rng = rng or random.Random()
    mult = IMPACT_MULTIPLIER[deal.trust_impact]
    actor_id = actor_id if actor_id and deal.involves(actor_id) else deal.proposer_id
    actor_name = snapshot.name_of(actor_id) if snapshot else actor_id

    if status == DealStatus.FULFILLED:
        boost = round(FULFILLED_BASE * mult)
        return DealOutcome(
            deal=deal,
            impact_score=boost,
            deltas=[
                RelationshipDelta(
                    guest_a=deal.proposer_id,
                    guest_b=deal.recipient_id,
                    change=boost,
                    event_type=RelationshipEventType.DEAL_FULFILLED.value,
                    description=f"{actor_name} honored their {deal.title} deal",
                    decayable=False,
                )
            ],
            alliance_stability_change=STABILITY_ON_FULFILLED,
        )

    if status == DealStatus.BROKEN:
        penalty = round(BROKEN_BASE * mult)
        deltas = [
            RelationshipDelta(
                guest_a=deal.proposer_id,
                guest_b=deal.recipient_id,
                change=penalty,
                event_type=RelationshipEventType.DEAL_BROKEN.value,
                description=f"{actor_name} broke their {deal.title} deal",
                decayable=False,
            )
        ]
        if snapshot is not None:
            deltas.extend(_betrayal_spread(deal, actor_id, snapshot, rng, spread_chance))
        return DealOutcome(
            deal=deal,
            impact_score=penalty,
            deltas=deltas,
            alliance_stability_change=STABILITY_ON_BROKEN,
        )

    return DealOutcome(deal=deal, impact_score=0)


def _betrayal_spread(
    deal: Deal,
    betrayer_id: str,
    snapshot: GameSnapshot,
    rng: random.Random,
    chance: float,
) -> List[RelationshipDelta]:
    betrayer = snapshot.name_of(betrayer_id)
    victim = snapshot.name_of(deal.partner_of(betrayer_id) or deal.recipient_id)
    deltas: List[RelationshipDelta] = []
    for guest in snapshot.active_houseguests():
        if deal.involves(guest.id):
            continue
        if rng.random() < chance:
            deltas.append(
                RelationshipDelta(
                    guest_a=guest.id,
                    guest_b=betrayer_id,
                    change=math.floor(-5 - rng.random() * 10),
                    event_type=RelationshipEventType.HEARD_ABOUT_BETRAYAL.value,
                    description=f"Learned that {betrayer} broke a deal with {victim}",
                    decayable=True,
                )
            )
    return deltas


def made_deal_delta(deal: Deal) -> RelationshipDelta:
    return RelationshipDelta(
        guest_a=deal.proposer_id,
        guest_b=deal.recipient_id,
        change=DEAL_MADE_BOOST,
        event_type=RelationshipEventType.DEAL_MADE.value,
        description=f"Made a {deal.title} deal",
    )


def declined_deal_delta(deal: Deal) -> RelationshipDelta:
    return RelationshipDelta(
        guest_a=deal.proposer_id,
        guest_b=deal.recipient_id,
        change=DEAL_DECLINED_PENALTY,
        event_type=RelationshipEventType.DEAL_DECLINED.value,
        description=f"Declined {deal.title} offer",
    )
