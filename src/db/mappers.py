"""ORM <-> Core conversion shared by the services."""

from typing import Any, Dict

from src.core.alliance.models import Alliance, AllianceStatus
from src.core.competition.models import (
    Competition,
    CompetitionCategory,
    CompetitionResult,
    CompetitionType,
)
from src.core.deal.models import Deal, DealContext, DealStatus, DealType, TrustImpact
from src.core.houseguest.models import (
    CompetitionWins,
    Houseguest,
    HouseguestStats,
    HouseguestStatus,
    trait_value,
)
from src.core.relationship.models import Relationship, RelationshipEvent
from src.db.models import (
    AllianceModel,
    CompetitionModel,
    CompetitionResultModel,
    DealModel,
    HouseguestModel,
    RelationshipEventModel,
    RelationshipModel,
)


# ── houseguests ──────────────────────────────────────────


def houseguest_from_orm(model: HouseguestModel) -> Houseguest:
    return Houseguest(
        id=model.houseguest_id,
        name=model.name,
        stats=HouseguestStats.from_dict(model.stats or {}),
        traits=list(model.traits or []),
        status=HouseguestStatus(model.status),
        is_hoh=model.is_hoh,
        is_nominated=model.is_nominated,
        is_pov_holder=model.is_pov_holder,
        is_player=model.is_player,
        competitions_won=CompetitionWins(
            hoh=model.hoh_wins, pov=model.pov_wins, other=model.other_wins
        ),
    )


def houseguest_to_orm(hg: Houseguest) -> HouseguestModel:
    return HouseguestModel(
        houseguest_id=hg.id,
        name=hg.name,
        stats=hg.stats.to_dict(),
        traits=[trait_value(t) for t in hg.traits],
        status=hg.status.value,
        is_hoh=hg.is_hoh,
        is_nominated=hg.is_nominated,
        is_pov_holder=hg.is_pov_holder,
        is_player=hg.is_player,
        hoh_wins=hg.competitions_won.hoh,
        pov_wins=hg.competitions_won.pov,
        other_wins=hg.competitions_won.other,
    )


# ── relationships ────────────────────────────────────────


def relationship_event_from_orm(model: RelationshipEventModel) -> RelationshipEvent:
    return RelationshipEvent(
        event_type=model.event_type,
        description=model.description or "",
        impact_score=model.impact_score,
        decayable=model.decayable,
        week=model.week,
    )


def relationship_from_orm(model: RelationshipModel) -> Relationship:
    return Relationship(
        guest_a=model.guest_a,
        guest_b=model.guest_b,
        score=model.score,
        notes=list(model.notes or []),
        events=[relationship_event_from_orm(e) for e in model.events],
    )


def alliance_from_orm(model: AllianceModel) -> Alliance:
    return Alliance(
        id=model.alliance_id,
        name=model.name,
        member_ids=list(model.member_ids or []),
        founder_id=model.founder_id,
        created_week=model.created_week,
        status=AllianceStatus(model.status),
        stability=model.stability,
        is_public=model.is_public,
        last_meeting_week=model.last_meeting_week,
        dissolved_by=list(model.dissolved_by or []),
    )


# ── deals ────────────────────────────────────────────────


def deal_context_to_dict(context: DealContext) -> Dict[str, Any]:
    return {
        "target_houseguest_id": context.target_houseguest_id,
        "alliance_id": context.alliance_id,
        "upgrade_from": context.upgrade_from,
    }


def deal_context_from_dict(data: Dict[str, Any]) -> DealContext:
    return DealContext(
        target_houseguest_id=data.get("target_houseguest_id"),
        alliance_id=data.get("alliance_id"),
        upgrade_from=data.get("upgrade_from"),
    )


def deal_to_dict(deal: Deal) -> Dict[str, Any]:
    """Plain dict form, used for proposal drafts and event payloads."""
    return {
        "id": deal.id,
        "type": deal.type.value,
        "proposer_id": deal.proposer_id,
        "recipient_id": deal.recipient_id,
        "week": deal.week,
        "status": deal.status.value,
        "trust_impact": deal.trust_impact.value,
        "title": deal.title,
        "description": deal.description,
        "context": deal_context_to_dict(deal.context),
        "expires_week": deal.expires_week,
    }


def deal_from_dict(data: Dict[str, Any]) -> Deal:
    return Deal(
        id=data["id"],
        type=DealType(data["type"]),
        proposer_id=data["proposer_id"],
        recipient_id=data["recipient_id"],
        week=data["week"],
        status=DealStatus(data.get("status", DealStatus.PENDING.value)),
        trust_impact=TrustImpact(data.get("trust_impact", TrustImpact.MEDIUM.value)),
        title=data.get("title", ""),
        description=data.get("description", ""),
        context=deal_context_from_dict(data.get("context") or {}),
        expires_week=data.get("expires_week"),
    )


def deal_from_orm(model: DealModel) -> Deal:
    return Deal(
        id=model.deal_id,
        type=DealType(model.deal_type),
        proposer_id=model.proposer_id,
        recipient_id=model.recipient_id,
        week=model.week,
        status=DealStatus(model.status),
        trust_impact=TrustImpact(model.trust_impact),
        title=model.title or "",
        description=model.description or "",
        context=deal_context_from_dict(model.context or {}),
        expires_week=model.expires_week,
    )


def deal_to_orm(deal: Deal) -> DealModel:
    return DealModel(
        deal_id=deal.id,
        deal_type=deal.type.value,
        proposer_id=deal.proposer_id,
        recipient_id=deal.recipient_id,
        week=deal.week,
        status=deal.status.value,
        trust_impact=deal.trust_impact.value,
        title=deal.title,
        description=deal.description,
        context=deal_context_to_dict(deal.context),
        expires_week=deal.expires_week,
    )


# ── competitions ─────────────────────────────────────────


def competition_to_orm(comp: Competition) -> CompetitionModel:
    return CompetitionModel(
        competition_id=comp.id,
        name=comp.name,
        category=comp.category.value,
        comp_type=comp.type.value,
        week=comp.week,
        description=comp.description,
        participants=list(comp.participants),
        winner_id=comp.winner_id,
        is_complete=comp.is_complete,
        results=[
            CompetitionResultModel(
                houseguest_id=r.houseguest_id,
                placement=r.placement,
                score=r.score,
                eliminated=r.eliminated,
                eliminated_at=r.eliminated_at,
            )
            for r in comp.results
        ],
    )


def competition_from_orm(model: CompetitionModel) -> Competition:
    return Competition(
        id=model.competition_id,
        name=model.name,
        category=CompetitionCategory(model.category),
        type=CompetitionType(model.comp_type),
        week=model.week,
        description=model.description or "",
        participants=list(model.participants or []),
        results=[
            CompetitionResult(
                houseguest_id=r.houseguest_id,
                placement=r.placement,
                score=r.score,
                eliminated=r.eliminated,
                eliminated_at=r.eliminated_at,
            )
            for r in model.results
        ],
        winner_id=model.winner_id,
        is_complete=model.is_complete,
    )
