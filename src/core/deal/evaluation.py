"""How an AI houseguest reacts to a deal the player offers"""

import random
from typing import Dict, List, Optional, Tuple

from src.core.alliance.stability import are_allied
from src.core.deal.models import (
    DEAL_TYPE_INFO,
    CounterOffer,
    DealContext,
    DealEvaluation,
    DealType,
)
from src.core.deal.proposals import reputation_penalty
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest, trait_value
from src.core.trust.aggregator import deal_trust

MIN_ACCEPTANCE = 5.0
MAX_ACCEPTANCE = 95.0
COUNTER_OFFER_CHANCE = 0.4
COUNTER_ACCEPTANCE_FLOOR = 40.0

ALLIANCE_REINFORCING = (
    DealType.SAFETY_AGREEMENT,
    DealType.VOTE_TOGETHER,
    DealType.FINAL_TWO,
)

COUNTER_OFFERS: Dict[DealType, List[DealType]] = {
    DealType.FINAL_TWO: [DealType.PARTNERSHIP, DealType.SAFETY_AGREEMENT],
    DealType.PARTNERSHIP: [DealType.SAFETY_AGREEMENT, DealType.INFORMATION_SHARING],
    DealType.TARGET_AGREEMENT: [DealType.VOTE_TOGETHER],
    DealType.VETO_USE: [DealType.SAFETY_AGREEMENT],
    DealType.ALLIANCE_INVITE: [DealType.PARTNERSHIP, DealType.SAFETY_AGREEMENT],
    DealType.SAFETY_AGREEMENT: [DealType.INFORMATION_SHARING],
}

COUNTER_REASONING = [
    "I'm not ready for {original}, but how about {counter} instead?",
    "That's too big of a commitment. Let's start with {counter} first.",
    "I'd rather do {counter} for now. We can talk about more later.",
]


def trait_deal_modifier(traits: List[str], deal_type: DealType) -> float:
    modifier = 0.0
    for trait in (trait_value(t) for t in traits):
        if trait == "Strategic":
            if deal_type in (DealType.TARGET_AGREEMENT, DealType.PARTNERSHIP):
                modifier += 10
        elif trait == "Loyal":
            if deal_type in (
                DealType.SAFETY_AGREEMENT,
                DealType.ALLIANCE_INVITE,
                DealType.FINAL_TWO,
            ):
                modifier += 20
            if deal_type == DealType.TARGET_AGREEMENT:
                modifier -= 10
        elif trait == "Sneaky":
            if deal_type == DealType.INFORMATION_SHARING:
                modifier += 15
            modifier -= 5
        elif trait == "Competitive":
            if deal_type == DealType.TARGET_AGREEMENT:
                modifier += 15
        elif trait == "Emotional":
            if deal_type in (DealType.FINAL_TWO, DealType.PARTNERSHIP):
                modifier += 25
        elif trait == "Paranoid":
            if deal_type == DealType.SAFETY_AGREEMENT:
                modifier += 10
            modifier -= 15
    return modifier


def acceptance_chance(
    npc: Houseguest,
    player: Houseguest,
    deal_type: DealType,
    snapshot: GameSnapshot,
    context: Optional[DealContext] = None,
) -> Tuple[float, str]:
    """(chance 5~95, reasoning override or "")"""
    relationship = snapshot.relationship(npc.id, player.id)
    trust = deal_trust(snapshot.deals, player.id)
    chance = 30 + relationship * 0.5 + (trust - 50) * 0.3
    chance -= reputation_penalty(snapshot, player.id)
    reasoning = ""

    allied = are_allied(snapshot.alliances, npc.id, player.id)
    if allied:
        chance += 20
        if deal_type in ALLIANCE_REINFORCING:
            chance += 10

    target_id = context.target_houseguest_id if context else None
    if deal_type == DealType.TARGET_AGREEMENT and target_id:
        if are_allied(snapshot.alliances, npc.id, target_id):
            chance -= 40
            reasoning = "I can't target someone from my own alliance."
        npc_to_target = snapshot.relationship(npc.id, target_id)
        if npc_to_target < -20:
            chance += 20
        elif npc_to_target > 30:
            chance -= 30

    chance += trait_deal_modifier(npc.traits, deal_type)

    if deal_type == DealType.SAFETY_AGREEMENT and npc.is_nominated:
        chance += 25
    if deal_type == DealType.VOTE_TOGETHER and npc.is_nominated:
        chance += 35
    if deal_type == DealType.FINAL_TWO:
        if len(snapshot.active_houseguests()) > 6:
            chance -= 20
        elif relationship < 40:
            chance -= 25
    if deal_type == DealType.PARTNERSHIP and allied:
        chance += 15

    return max(MIN_ACCEPTANCE, min(MAX_ACCEPTANCE, chance)), reasoning


def evaluate_player_deal(
    npc: Houseguest,
    player: Houseguest,
    deal_type: DealType,
    snapshot: GameSnapshot,
    context: Optional[DealContext] = None,
    rng: Optional[random.Random] = None,
) -> DealEvaluation:
    """Roll whether the AI houseguest accepts, with an in-character reason."""
    rng = rng or random.Random()
    chance, reasoning = acceptance_chance(npc, player, deal_type, snapshot, context)
    would_accept = rng.random() * 100 < chance

    if not reasoning:
        relationship = snapshot.relationship(npc.id, player.id)
        if would_accept:
            if relationship > 40:
                reasoning = "I think we can work well together."
            elif npc.is_nominated:
                reasoning = "I need all the help I can get right now."
            elif are_allied(snapshot.alliances, npc.id, player.id):
                reasoning = "We're already working together, so this makes sense."
            else:
                reasoning = "This could be beneficial for both of us."
        else:
            if reputation_penalty(snapshot, player.id) > 20:
                reasoning = "I've heard you've broken deals before. I can't trust that."
            elif relationship < 20:
                reasoning = "I don't think I can trust you with that."
            elif deal_trust(snapshot.deals, player.id) < 40:
                reasoning = "Your track record concerns me."
            else:
                reasoning = "I'm not sure this is the right move for me."

    return DealEvaluation(
        acceptance_chance=chance, would_accept=would_accept, reasoning=reasoning
    )


def suggest_counter_offer(
    npc: Houseguest,
    player: Houseguest,
    original_type: DealType,
    snapshot: GameSnapshot,
    context: Optional[DealContext] = None,
    rng: Optional[random.Random] = None,
    offer_chance: float = COUNTER_OFFER_CHANCE,
) -> Optional[CounterOffer]:
    """Smaller deal the AI houseguest would take instead, if any."""
    alternatives = COUNTER_OFFERS.get(original_type)
    if not alternatives:
        return None
    rng = rng or random.Random()
    if rng.random() > offer_chance:
        return None

    for counter_type in alternatives:
        chance, _ = acceptance_chance(npc, player, counter_type, snapshot, context)
        if chance >= COUNTER_ACCEPTANCE_FLOOR:
            template = rng.choice(COUNTER_REASONING)
            return CounterOffer(
                counter_type=counter_type,
                reasoning=template.format(
                    original=DEAL_TYPE_INFO[original_type].title,
                    counter=DEAL_TYPE_INFO[counter_type].title,
                ),
                acceptance_chance=chance,
            )
    return None
