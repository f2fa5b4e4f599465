"""Obligation checks: would an upcoming action violate an active deal?

Advisory only. Nothing here changes deal or relationship state.
"""

from typing import Iterable, List, Optional

from src.core.deal.models import (
    Deal,
    DealObligation,
    DealType,
    ObligationSeverity,
    active_deals_for,
)
from src.core.game_state import GamePhase, GameSnapshot


def check_obligation(
    deal: Deal,
    phase: GamePhase,
    partner_id: str,
    potential_target_ids: Iterable[str],
    partner_name: str = "",
) -> Optional[DealObligation]:
    """Obligation for one deal in one phase, or None."""
    targets = set(potential_target_ids)
    name = partner_name or partner_id
    title = deal.title or deal.type.value

    def obligation(consequence: str, severity: ObligationSeverity) -> DealObligation:
        return DealObligation(
            deal=deal,
            partner_id=partner_id,
            partner_name=name,
            warning_message=f"You have a {title} with {name}",
            consequence=consequence,
            severity=severity,
        )

    if phase == GamePhase.NOMINATION:
        if deal.type == DealType.SAFETY_AGREEMENT and partner_id in targets:
            return obligation(
                "Nominating them will break this deal and damage trust!",
                ObligationSeverity.CRITICAL,
            )
        target_id = deal.context.target_houseguest_id
        if (
            deal.type == DealType.TARGET_AGREEMENT
            and target_id
            and target_id not in targets
        ):
            return obligation(
                "You agreed to target a specific houseguest if you win HoH",
                ObligationSeverity.WARNING,
            )
    elif phase == GamePhase.POV_MEETING:
        if deal.type == DealType.VETO_USE and partner_id in targets:
            return obligation(
                "You promised to use the Veto on them if they're on the block",
                ObligationSeverity.CRITICAL,
            )
    elif phase == GamePhase.EVICTION:
        if deal.type == DealType.VOTE_TOGETHER:
            return obligation(
                "You agreed to vote together this week", ObligationSeverity.WARNING
            )
    elif phase == GamePhase.FINAL_HOH:
        if deal.type == DealType.FINAL_TWO:
            return obligation(
                "Breaking this deal would be a major betrayal!",
                ObligationSeverity.CRITICAL,
            )
    return None


def collect_obligations(
    snapshot: Optional[GameSnapshot],
    player_id: str,
    phase: GamePhase,
    potential_target_ids: Iterable[str] = (),
) -> List[DealObligation]:
    """All obligations across the player's active deals."""
    if snapshot is None:
        return []
    targets = list(potential_target_ids)
    obligations: List[DealObligation] = []
    for deal in active_deals_for(snapshot.deals, player_id):
        partner_id = deal.partner_of(player_id)
        partner = snapshot.get_houseguest(partner_id) if partner_id else None
        if partner is None:
            continue
        found = check_obligation(deal, phase, partner.id, targets, partner.name)
        if found is not None:
            obligations.append(found)
    return obligations
