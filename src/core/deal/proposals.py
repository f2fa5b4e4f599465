"""AI houseguest deal proposals toward the player

Called once per social phase. Each AI houseguest that likes the player
enough lines up candidate offers, then the house-wide list is cut down
to a few varied proposals so the player is not flooded.
"""

import time
from dataclasses import dataclass
from typing import List, Optional

from src.core.alliance.stability import are_allied
from src.core.deal.lifecycle import build_deal
from src.core.deal.models import (
    Deal,
    DealContext,
    DealStatus,
    DealType,
    NPCProposal,
    active_deals_between,
)
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest, PersonalityTrait
from src.core.logging import get_logger
from src.core.trust.aggregator import deal_trust

logger = get_logger(__name__)

REPUTATION_PENALTY_PER_BROKEN = 15
MIN_RELATIONSHIP_TO_PROPOSE = 10
URGENT_BONUS = 100
LATE_GAME_HOUSE_SIZE = 6

REASONING = {
    DealType.ALLIANCE_INVITE: "We've been working well together. I think it's time to make it official.",
    DealType.VOTE_TOGETHER: "I need your vote to stay. In return, I'll have your back next week.",
    DealType.TARGET_AGREEMENT: "{target} is getting too powerful. We should work together to get them out.",
    DealType.SAFETY_AGREEMENT: "Congratulations on HoH! How about we agree not to put each other up in the future?",
    DealType.PARTNERSHIP: "I think we work well together. Want to officially partner up?",
    DealType.FINAL_TWO: "We're getting close to the end. I want you with me in the final 2.",
    DealType.INFORMATION_SHARING: "Let's share what we hear around the house. Information is power in this game.",
}

MILESTONE_PROPOSALS = {
    25: (
        DealType.INFORMATION_SHARING,
        "I feel like I can trust you now. Let's share what we hear around the house.",
    ),
    50: (
        DealType.SAFETY_AGREEMENT,
        "You've become one of my closest people here. Let's protect each other.",
    ),
    75: (
        DealType.PARTNERSHIP,
        "I trust you completely. We should ride this out together.",
    ),
}


@dataclass
class _Candidate:
    proposal: NPCProposal
    priority: float


def reputation_penalty(snapshot: GameSnapshot, player_id: str) -> int:
    broken = [
        d
        for d in snapshot.deals
        if d.status == DealStatus.BROKEN and d.involves(player_id)
    ]
    return len(broken) * REPUTATION_PENALTY_PER_BROKEN


def find_common_threat(
    npc: Houseguest, player: Houseguest, snapshot: GameSnapshot
) -> Optional[Houseguest]:
    """A houseguest both dislike, or a competition beast either is wary of."""
    for guest in snapshot.active_houseguests():
        if guest.id in (npc.id, player.id):
            continue
        npc_rel = snapshot.relationship(npc.id, guest.id)
        player_rel = snapshot.relationship(player.id, guest.id)
        if npc_rel < -10 and player_rel < -5:
            return guest
        if guest.competitions_won.total_power >= 2 and (npc_rel < 20 or player_rel < 20):
            return guest
    return None


def _make_proposal(
    npc: Houseguest,
    player: Houseguest,
    deal_type: DealType,
    reasoning: str,
    snapshot: GameSnapshot,
    now: float,
    target: Optional[Houseguest] = None,
) -> NPCProposal:
    proposal_id = f"proposal-{snapshot.week}-{npc.id}-{deal_type.value}"
    deal: Deal = build_deal(
        deal_id=proposal_id,
        deal_type=deal_type,
        proposer_id=npc.id,
        recipient_id=player.id,
        week=snapshot.week,
        context=DealContext(target_houseguest_id=target.id if target else None),
        target_name=target.name if target else None,
    )
    return NPCProposal(
        id=proposal_id,
        from_npc_id=npc.id,
        from_npc_name=npc.name,
        to_player_id=player.id,
        deal=deal,
        reasoning=reasoning,
        timestamp=now,
    )


def proposals_from(
    npc: Houseguest,
    player: Houseguest,
    snapshot: GameSnapshot,
    now: Optional[float] = None,
) -> List[NPCProposal]:
    """Every offer one AI houseguest would make to the player right now."""
    now = time.time() if now is None else now
    relationship = snapshot.relationship(npc.id, player.id)
    adjusted = relationship - reputation_penalty(snapshot, player.id)
    if adjusted < MIN_RELATIONSHIP_TO_PROPOSE:
        return []

    existing = {d.type for d in active_deals_between(snapshot.deals, npc.id, player.id)}
    allied = are_allied(snapshot.alliances, npc.id, player.id)
    proposals: List[NPCProposal] = []

    def add(deal_type: DealType, target: Optional[Houseguest] = None) -> None:
        reasoning = REASONING[deal_type].format(target=target.name if target else "")
        proposals.append(
            _make_proposal(npc, player, deal_type, reasoning, snapshot, now, target)
        )

    # partnership + safety pact already in place: make it official
    if (
        DealType.PARTNERSHIP in existing
        and DealType.SAFETY_AGREEMENT in existing
        and adjusted > 40
        and not allied
    ):
        add(DealType.ALLIANCE_INVITE)

    if npc.is_nominated and adjusted > 15:
        add(DealType.VOTE_TOGETHER)

    threat = find_common_threat(npc, player, snapshot)
    if threat is not None and adjusted > 25:
        add(DealType.TARGET_AGREEMENT, threat)

    if (
        adjusted > 35
        and DealType.SAFETY_AGREEMENT not in existing
        and not allied
        and player.is_hoh
    ):
        add(DealType.SAFETY_AGREEMENT)

    if adjusted > 40 and DealType.PARTNERSHIP not in existing and not allied:
        add(DealType.PARTNERSHIP)

    if (
        adjusted > 55
        and len(snapshot.active_houseguests()) <= LATE_GAME_HOUSE_SIZE
        and DealType.FINAL_TWO not in existing
    ):
        add(DealType.FINAL_TWO)

    if (
        (npc.has_trait(PersonalityTrait.SNEAKY) or npc.has_trait(PersonalityTrait.STRATEGIC))
        and adjusted > 30
        and deal_trust(snapshot.deals, player.id) > 40
        and DealType.INFORMATION_SHARING not in existing
    ):
        add(DealType.INFORMATION_SHARING)

    return proposals


def generate_proposals(
    snapshot: Optional[GameSnapshot],
    max_proposals: int = 3,
    now: Optional[float] = None,
) -> List[NPCProposal]:
    """This social phase's proposals to the player, most pressing first."""
    if snapshot is None:
        return []
    player = snapshot.player()
    if player is None:
        return []

    candidates: List[_Candidate] = []
    for npc in snapshot.active_houseguests():
        if npc.is_player:
            continue
        rel = snapshot.relationship(npc.id, player.id)
        for proposal in proposals_from(npc, player, snapshot, now):
            urgent = URGENT_BONUS if proposal.deal.type == DealType.VOTE_TOGETHER else 0
            candidates.append(_Candidate(proposal, rel + urgent))

    # stable sort keeps generation order between equal priorities
    candidates.sort(key=lambda c: c.priority, reverse=True)
    limit = min(max_proposals, max(1, len(candidates) // 2))

    selected: List[NPCProposal] = []
    used_types = set()
    used_npcs = set()
    for candidate in candidates:
        if len(selected) >= limit:
            break
        proposal = candidate.proposal
        if proposal.deal.type in used_types and selected:
            continue
        if proposal.from_npc_id in used_npcs and len(candidates) > limit:
            continue
        selected.append(proposal)
        used_types.add(proposal.deal.type)
        used_npcs.add(proposal.from_npc_id)

    logger.debug(
        f"Proposals for {player.id}: {len(candidates)} candidates, {len(selected)} selected"
    )
    return selected


def milestone_proposal(
    npc: Houseguest,
    player: Houseguest,
    old_score: float,
    new_score: float,
    snapshot: GameSnapshot,
    now: Optional[float] = None,
) -> Optional[NPCProposal]:
    """Offer triggered by the relationship crossing 25, 50 or 75."""
    if npc.is_player or not player.is_player:
        return None
    now = time.time() if now is None else now
    existing = {d.type for d in active_deals_between(snapshot.deals, npc.id, player.id)}
    for threshold in sorted(MILESTONE_PROPOSALS):
        deal_type, reasoning = MILESTONE_PROPOSALS[threshold]
        if old_score < threshold <= new_score and deal_type not in existing:
            return _make_proposal(npc, player, deal_type, reasoning, snapshot, now)
    return None
