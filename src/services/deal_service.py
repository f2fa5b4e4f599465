"""Deal Service - deal persistence, proposals and outcomes

Service -> Core, Service -> DB.
Relationship consequences are not written here: every outcome is emitted
as an event carrying its RelationshipDelta list, and the relationship
module applies it through RelationshipService.
"""

import random
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.config import settings
from src.core.deal.evaluation import evaluate_player_deal, suggest_counter_offer
from src.core.deal.lifecycle import (
    DealAction,
    DealOutcome,
    build_deal,
    declined_deal_delta,
    evaluate_deal_for_action,
    expire_deals as core_expire_deals,
    made_deal_delta,
    outcome_deltas,
    transition,
)
from src.core.deal.models import (
    CounterOffer,
    Deal,
    DealContext,
    DealEvaluation,
    DealObligation,
    DealStatus,
    DealType,
    NPCProposal,
    ProposalResponse,
)
from src.core.deal.obligations import collect_obligations
from src.core.deal.proposals import (
    generate_proposals as core_generate_proposals,
    milestone_proposal,
)
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase, GameSnapshot
from src.core.logging import get_logger
from src.core.relationship.models import RelationshipDelta
from src.db.mappers import deal_from_dict, deal_from_orm, deal_to_dict, deal_to_orm
from src.db.models import DealModel, ProposalModel

logger = get_logger(__name__)

# which params key names the houseguest whose action resolved the deal
ACTOR_PARAM = {
    DealAction.NOMINATE: "nominator_id",
    DealAction.VETO_DECISION: "pov_holder_id",
    DealAction.FINAL_SELECTION: "selector_id",
}


@dataclass
class DealOfferResult:
    """What happened when the player offered a deal to an AI houseguest"""

    evaluation: DealEvaluation
    deal: Optional[Deal] = None
    counter_offer: Optional[CounterOffer] = None


def delta_to_dict(delta: RelationshipDelta) -> Dict[str, Any]:
    return asdict(delta)


def delta_from_dict(data: Mapping[str, Any]) -> RelationshipDelta:
    return RelationshipDelta(**dict(data))


class DealService:
    """Deal CRUD, AI proposals, player offers, action evaluation, expiry"""

    def __init__(
        self,
        db_session: Session,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._db = db_session
        self._bus = event_bus
        self._rng = rng or random.Random()

    # ── lookups ──────────────────────────────────────────────

    def get_deal(self, deal_id: str) -> Optional[Deal]:
        row = self._db.get(DealModel, deal_id)
        return deal_from_orm(row) if row is not None else None

    def get_deals(self, status: Optional[DealStatus] = None) -> List[Deal]:
        query = self._db.query(DealModel)
        if status is not None:
            query = query.filter(DealModel.status == status.value)
        return [deal_from_orm(r) for r in query.all()]

    def deals_for(self, houseguest_id: str, active_only: bool = False) -> List[Deal]:
        query = self._db.query(DealModel).filter(
            or_(
                DealModel.proposer_id == houseguest_id,
                DealModel.recipient_id == houseguest_id,
            )
        )
        if active_only:
            query = query.filter(DealModel.status == DealStatus.ACTIVE.value)
        return [deal_from_orm(r) for r in query.all()]

    # ── creation ─────────────────────────────────────────────

    def create_deal(
        self,
        deal_type: DealType,
        proposer_id: str,
        recipient_id: str,
        week: int,
        context: Optional[DealContext] = None,
        target_name: Optional[str] = None,
    ) -> Deal:
        """Create an agreed deal (status active) and announce it."""
        if proposer_id == recipient_id:
            raise ValueError("A deal needs two different houseguests")
        draft = build_deal(
            deal_id=str(uuid.uuid4()),
            deal_type=deal_type,
            proposer_id=proposer_id,
            recipient_id=recipient_id,
            week=week,
            context=context,
            target_name=target_name,
        )
        return self._activate(draft)

    def offer_deal(
        self,
        snapshot: GameSnapshot,
        player_id: str,
        npc_id: str,
        deal_type: DealType,
        context: Optional[DealContext] = None,
    ) -> DealOfferResult:
        """The player offers a deal. The AI houseguest accepts, declines or counters."""
        player = snapshot.get_houseguest(player_id)
        npc = snapshot.get_houseguest(npc_id)
        if player is None or npc is None:
            raise ValueError(f"Unknown houseguest in offer: {player_id} -> {npc_id}")

        evaluation = evaluate_player_deal(
            npc, player, deal_type, snapshot, context, rng=self._rng
        )
        target_name = None
        if context and context.target_houseguest_id:
            target_name = snapshot.name_of(context.target_houseguest_id)

        draft = build_deal(
            deal_id=str(uuid.uuid4()),
            deal_type=deal_type,
            proposer_id=player_id,
            recipient_id=npc_id,
            week=snapshot.week,
            context=context,
            target_name=target_name,
        )
        if evaluation.would_accept:
            logger.info(
                f"{npc.name} accepted {deal_type.value} from {player.name} "
                f"({evaluation.acceptance_chance:.0f}%)"
            )
            return DealOfferResult(evaluation=evaluation, deal=self._activate(draft))

        self._decline(draft)
        counter = suggest_counter_offer(
            npc,
            player,
            deal_type,
            snapshot,
            context,
            rng=self._rng,
        )
        logger.info(
            f"{npc.name} declined {deal_type.value} from {player.name}"
            + (f", countered with {counter.counter_type.value}" if counter else "")
        )
        return DealOfferResult(evaluation=evaluation, counter_offer=counter)

    # ── AI proposals ─────────────────────────────────────────

    def generate_proposals(
        self,
        snapshot: GameSnapshot,
        max_proposals: Optional[int] = None,
    ) -> List[NPCProposal]:
        """Generate and store this phase's AI proposals to the player."""
        limit = max_proposals if max_proposals is not None else settings.MAX_PROPOSALS_PER_PHASE
        self.expire_proposals(snapshot.week)
        proposals = core_generate_proposals(snapshot, max_proposals=limit)
        stored = [p for p in proposals if self._store_proposal(p)]
        self._db.commit()
        for proposal in stored:
            self._emit_proposed(proposal)
        logger.info(f"Generated {len(stored)} proposals (week {snapshot.week})")
        return stored

    def create_milestone_proposal(
        self,
        snapshot: GameSnapshot,
        npc_id: str,
        player_id: str,
        old_score: float,
        new_score: float,
    ) -> Optional[NPCProposal]:
        npc = snapshot.get_houseguest(npc_id)
        player = snapshot.get_houseguest(player_id)
        if npc is None or player is None:
            return None
        proposal = milestone_proposal(npc, player, old_score, new_score, snapshot)
        if proposal is None or not self._store_proposal(proposal):
            return None
        self._db.commit()
        self._emit_proposed(proposal)
        return proposal

    def get_pending_proposals(self, player_id: str) -> List[NPCProposal]:
        rows = (
            self._db.query(ProposalModel)
            .filter(
                ProposalModel.to_player_id == player_id,
                ProposalModel.response == ProposalResponse.PENDING.value,
            )
            .order_by(ProposalModel.timestamp)
            .all()
        )
        return [self._proposal_from_orm(r) for r in rows]

    def expire_proposals(self, week: int) -> List[NPCProposal]:
        """Close pending proposals made before this week. They can no longer be answered."""
        rows = (
            self._db.query(ProposalModel)
            .filter(ProposalModel.response == ProposalResponse.PENDING.value)
            .all()
        )
        stale = [r for r in rows if r.deal_draft.get("week", week) < week]
        for row in stale:
            row.response = ProposalResponse.EXPIRED.value
        if stale:
            self._db.commit()
            logger.info(f"Expired {len(stale)} unanswered proposals at week {week}")
        return [self._proposal_from_orm(r) for r in stale]

    def respond_to_proposal(self, proposal_id: str, accept: bool) -> Optional[Deal]:
        """Player answers an AI proposal. Returns the new deal when accepted."""
        row = self._db.get(ProposalModel, proposal_id)
        if row is None:
            raise ValueError(f"Proposal not found: {proposal_id}")
        if row.response == ProposalResponse.EXPIRED.value:
            raise ValueError(f"Proposal {proposal_id} expired")
        if row.response != ProposalResponse.PENDING.value:
            raise ValueError(f"Proposal {proposal_id} already answered: {row.response}")

        draft = deal_from_dict(row.deal_draft)
        draft.id = str(uuid.uuid4())
        if accept:
            row.response = ProposalResponse.ACCEPTED.value
            deal = self._activate(draft)
            logger.info(f"Proposal accepted: {proposal_id} -> deal {deal.id}")
            return deal

        row.response = ProposalResponse.DECLINED.value
        self._decline(draft)
        logger.info(f"Proposal declined: {proposal_id}")
        return None

    # ── action evaluation ────────────────────────────────────

    def process_action(
        self,
        snapshot: GameSnapshot,
        action: DealAction,
        params: Mapping[str, Any],
    ) -> List[DealOutcome]:
        """Resolve every active deal the action fulfils or breaks."""
        actor_key = ACTOR_PARAM.get(action)
        actor_id = params.get(actor_key) if actor_key else None
        outcomes: List[DealOutcome] = []

        for deal in self.get_deals(DealStatus.ACTIVE):
            new_status = evaluate_deal_for_action(deal, action, params, snapshot)
            if new_status is None:
                continue
            resolved = transition(deal, new_status)
            self._save_status(resolved)
            outcome = outcome_deltas(
                resolved,
                new_status,
                snapshot,
                rng=self._rng,
                spread_chance=settings.BETRAYAL_SPREAD_CHANCE,
                actor_id=actor_id,
            )
            outcomes.append(outcome)

        self._db.commit()
        for outcome in outcomes:
            self._emit_outcome(outcome, snapshot.week, actor_id)
        return outcomes

    # ── expiry ───────────────────────────────────────────────

    def expire_deals(self, week: int) -> List[Deal]:
        expired = core_expire_deals(self.get_deals(DealStatus.ACTIVE), week)
        for deal in expired:
            self._save_status(deal)
        self._db.commit()
        for deal in expired:
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.DEAL_EXPIRED,
                    data={"deal_id": deal.id, "week": week, "dedup_key": deal.id},
                    source="deal_service",
                )
            )
        if expired:
            logger.info(f"Expired {len(expired)} deals at week {week}")
        return expired

    # ── obligations ──────────────────────────────────────────

    def get_obligations(
        self,
        snapshot: GameSnapshot,
        player_id: str,
        phase: GamePhase,
        potential_target_ids: Iterable[str] = (),
    ) -> List[DealObligation]:
        obligations = collect_obligations(snapshot, player_id, phase, potential_target_ids)
        for ob in obligations:
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.OBLIGATION_WARNING,
                    data={
                        "deal_id": ob.deal.id,
                        "partner_id": ob.partner_id,
                        "severity": ob.severity.value,
                        "phase": phase.value,
                        "dedup_key": f"{ob.deal.id}:{phase.value}",
                    },
                    source="deal_service",
                )
            )
        return obligations

    # ── internal helpers ─────────────────────────────────────

    def _activate(self, draft: Deal) -> Deal:
        deal = transition(draft, DealStatus.ACTIVE)
        self._db.add(deal_to_orm(deal))
        self._db.commit()
        logger.info(
            f"Deal created: {deal.title} {deal.proposer_id} <-> {deal.recipient_id} ({deal.id})"
        )
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.DEAL_ACCEPTED,
                data={
                    "deal": deal_to_dict(deal),
                    "deltas": [delta_to_dict(made_deal_delta(deal))],
                    "week": deal.week,
                    "dedup_key": deal.id,
                },
                source="deal_service",
            )
        )
        return deal

    def _decline(self, draft: Deal) -> Deal:
        deal = transition(draft, DealStatus.DECLINED)
        self._db.add(deal_to_orm(deal))
        self._db.commit()
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.DEAL_DECLINED,
                data={
                    "deal": deal_to_dict(deal),
                    "deltas": [delta_to_dict(declined_deal_delta(deal))],
                    "week": deal.week,
                    "dedup_key": deal.id,
                },
                source="deal_service",
            )
        )
        return deal

    def _save_status(self, deal: Deal) -> None:
        row = self._db.get(DealModel, deal.id)
        if row is None:
            raise ValueError(f"Deal not found: {deal.id}")
        row.status = deal.status.value
        self._db.flush()

    def _store_proposal(self, proposal: NPCProposal) -> bool:
        """False when the same proposal was already made this week."""
        if self._db.get(ProposalModel, proposal.id) is not None:
            return False
        self._db.add(
            ProposalModel(
                proposal_id=proposal.id,
                from_npc_id=proposal.from_npc_id,
                from_npc_name=proposal.from_npc_name,
                to_player_id=proposal.to_player_id,
                deal_draft=deal_to_dict(proposal.deal),
                reasoning=proposal.reasoning,
                timestamp=proposal.timestamp,
                response=proposal.response.value,
            )
        )
        self._db.flush()
        return True

    def _emit_proposed(self, proposal: NPCProposal) -> None:
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.DEAL_PROPOSED,
                data={
                    "proposal_id": proposal.id,
                    "from_npc_id": proposal.from_npc_id,
                    "to_player_id": proposal.to_player_id,
                    "deal_type": proposal.deal.type.value,
                    "dedup_key": proposal.id,
                },
                source="deal_service",
            )
        )

    def _emit_outcome(
        self, outcome: DealOutcome, week: int, actor_id: Optional[str]
    ) -> None:
        deal = outcome.deal
        event_type = (
            EventTypes.DEAL_FULFILLED
            if deal.status == DealStatus.FULFILLED
            else EventTypes.DEAL_BROKEN
        )
        logger.info(f"Deal {deal.status.value}: {deal.title} ({deal.id}), impact {outcome.impact_score}")
        self._bus.emit(
            GameEvent(
                event_type=event_type,
                data={
                    "deal": deal_to_dict(deal),
                    "actor_id": actor_id,
                    "impact_score": outcome.impact_score,
                    "deltas": [delta_to_dict(d) for d in outcome.deltas],
                    "alliance_stability_change": outcome.alliance_stability_change,
                    "week": week,
                    "dedup_key": deal.id,
                },
                source="deal_service",
            )
        )

    @staticmethod
    def _proposal_from_orm(model: ProposalModel) -> NPCProposal:
        return NPCProposal(
            id=model.proposal_id,
            from_npc_id=model.from_npc_id,
            from_npc_name=model.from_npc_name,
            to_player_id=model.to_player_id,
            deal=deal_from_dict(model.deal_draft),
            reasoning=model.reasoning or "",
            timestamp=model.timestamp,
            response=ProposalResponse(model.response),
        )
