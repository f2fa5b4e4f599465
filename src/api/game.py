"""Game API endpoints."""

from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.schemas import (
    AIVotesRequest,
    CompetitionRequest,
    CompetitionResponse,
    CompetitionResultInfo,
    DealInfo,
    ErrorResponse,
    EvictRequest,
    FinalistRequest,
    FinalistResponse,
    GenerateProposalsRequest,
    HouseguestInfo,
    NominationRequest,
    NominationsResponse,
    ObligationInfo,
    ObligationListResponse,
    OfferDealRequest,
    OfferDealResponse,
    PhaseRequest,
    PhaseResponse,
    ProposalAnswerRequest,
    ProposalAnswerResponse,
    ProposalInfo,
    ProposalListResponse,
    RegisterHouseguestsRequest,
    RelationshipResponse,
    RelationshipSeedRequest,
    ReplacementNomineeRequest,
    ReplacementRequest,
    ReplacementResponse,
    RoleRequest,
    RosterResponse,
    TrustResponse,
    VetoRequest,
    VetoResponse,
    VoteRequest,
    VotesResponse,
)
from src.core.competition.models import Competition, CompetitionCategory, CompetitionType
from src.core.deal.models import Deal, DealContext, DealStatus, DealType, NPCProposal
from src.core.game_state import GamePhase
from src.core.houseguest.models import (
    Houseguest,
    HouseguestStatus,
    HouseguestStats,
    PersonalityTrait,
    trait_value,
)
from src.core.logging import get_logger
from src.core.relationship.tiers import get_tier_for_score
from src.core.trust.aggregator import compute_trust
from src.engine.decision_scheduler import GameSession
from src.modules.base import GameContext
from src.modules.module_manager import ModuleManager
from src.services.ai_decision_service import AIDecisionService
from src.services.competition_service import CompetitionService
from src.services.deal_service import DealService
from src.services.decision_service import DecisionService
from src.services.game_state_service import GameStateService
from src.services.relationship_service import RelationshipService

logger = get_logger(__name__)

router = APIRouter(prefix="/game", tags=["game"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


# ── dependencies ───────────────────────────────────────────────


def get_game_state_service(request: Request) -> GameStateService:
    service: GameStateService = request.app.state.game_state_service
    return service


def get_relationship_service(request: Request) -> RelationshipService:
    service: RelationshipService = request.app.state.relationship_service
    return service


def get_deal_service(request: Request) -> DealService:
    service: DealService = request.app.state.deal_service
    return service


def get_competition_service(request: Request) -> CompetitionService:
    service: CompetitionService = request.app.state.competition_service
    return service


def get_decision_service(request: Request) -> DecisionService:
    service: DecisionService = request.app.state.decision_service
    return service


def get_ai_decision_service(request: Request) -> AIDecisionService:
    service: AIDecisionService = request.app.state.ai_decision_service
    return service


def get_module_manager(request: Request) -> ModuleManager:
    manager: ModuleManager = request.app.state.module_manager
    return manager


def get_game_session(request: Request) -> GameSession:
    session: GameSession = request.app.state.game_session
    return session


# ── converters ─────────────────────────────────────────────────


def _houseguest_info(hg: Houseguest) -> HouseguestInfo:
    return HouseguestInfo(
        id=hg.id,
        name=hg.name,
        status=hg.status.value,
        traits=[trait_value(t) for t in hg.traits],
        is_hoh=hg.is_hoh,
        is_nominated=hg.is_nominated,
        is_pov_holder=hg.is_pov_holder,
        is_player=hg.is_player,
        hoh_wins=hg.competitions_won.hoh,
        pov_wins=hg.competitions_won.pov,
    )


def _deal_info(deal: Deal) -> DealInfo:
    return DealInfo(
        id=deal.id,
        type=deal.type.value,
        proposer_id=deal.proposer_id,
        recipient_id=deal.recipient_id,
        status=deal.status.value,
        week=deal.week,
        title=deal.title,
        description=deal.description,
        trust_impact=deal.trust_impact.value,
        target_houseguest_id=deal.context.target_houseguest_id,
        expires_week=deal.expires_week,
    )


def _proposal_info(proposal: NPCProposal) -> ProposalInfo:
    return ProposalInfo(
        id=proposal.id,
        from_npc_id=proposal.from_npc_id,
        from_npc_name=proposal.from_npc_name,
        to_player_id=proposal.to_player_id,
        reasoning=proposal.reasoning,
        response=proposal.response.value,
        deal=_deal_info(proposal.deal),
    )


def _competition_response(comp: Competition) -> CompetitionResponse:
    return CompetitionResponse(
        id=comp.id,
        name=comp.name,
        category=comp.category.value,
        type=comp.type.value,
        week=comp.week,
        description=comp.description,
        winner_id=comp.winner_id,
        results=[
            CompetitionResultInfo(
                houseguest_id=r.houseguest_id,
                placement=r.placement,
                score=r.score,
                eliminated=r.eliminated,
                eliminated_at=r.eliminated_at,
            )
            for r in comp.results
        ],
    )


def _roster(state: GameStateService) -> RosterResponse:
    return RosterResponse(
        success=True,
        week=state.get_week(),
        phase=state.get_phase().value,
        houseguests=[_houseguest_info(h) for h in state.list_houseguests()],
    )


def _context(state: GameStateService) -> GameContext:
    player = next((h for h in state.list_houseguests(active_only=True) if h.is_player), None)
    return GameContext(
        week=state.get_week(),
        phase=state.get_phase(),
        player_id=player.id if player else None,
    )


def _parse_enum(enum_cls, value: str, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown {what}: {value}")


def _require(state: GameStateService, *houseguest_ids: str) -> None:
    for hid in houseguest_ids:
        if state.get_houseguest(hid) is None:
            raise HTTPException(status_code=404, detail=f"Houseguest not found: {hid}")


# ── season ─────────────────────────────────────────────────────


@router.get("/state", response_model=RosterResponse)
def get_state(state: GameStateService = Depends(get_game_state_service)) -> RosterResponse:
    """Current week, phase and the full cast."""
    return _roster(state)


@router.post("/houseguests", response_model=RosterResponse, responses=ERROR_RESPONSES)
def register_houseguests(
    request: RegisterHouseguestsRequest,
    state: GameStateService = Depends(get_game_state_service),
    session: GameSession = Depends(get_game_session),
) -> RosterResponse:
    """Register the season's houseguests. At most one may be the player."""
    houseguests = [
        Houseguest(
            id=h.id,
            name=h.name,
            stats=HouseguestStats.from_dict(h.stats),
            traits=[_parse_enum(PersonalityTrait, t, "trait") for t in h.traits],
            is_player=h.is_player,
        )
        for h in request.houseguests
    ]
    try:
        session.apply(state.register_houseguests, houseguests)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Registered houseguests: %s", [h.id for h in houseguests])
    return _roster(state)


@router.post("/roles", response_model=RosterResponse, responses=ERROR_RESPONSES)
def assign_roles(
    request: RoleRequest,
    state: GameStateService = Depends(get_game_state_service),
    session: GameSession = Depends(get_game_session),
) -> RosterResponse:
    """Seed HoH, veto holder or nominees directly.

    Only board state changes here. Ceremonies that deals should react to go
    through /nominations, /votes, /veto, /replacement and /finalists.
    """
    try:
        with session.writer():
            if request.hoh_id is not None:
                state.set_hoh(request.hoh_id)
            if request.pov_holder_id is not None:
                state.set_pov_holder(request.pov_holder_id)
            if request.nominee_ids is not None:
                state.set_nominees(request.nominee_ids)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _roster(state)


def _enter_phase(
    phase: GamePhase,
    state: GameStateService,
    manager: ModuleManager,
    session: GameSession,
    new_week: bool = False,
) -> PhaseResponse:
    with session.writer():
        if new_week:
            state.advance_week()
        else:
            state.set_phase(phase)
        context = _context(state)
        manager.process_phase_enter(context.phase, context)
        manager.process_phase(context)
        actions = manager.get_all_actions(context)
    return PhaseResponse(
        week=context.week,
        phase=context.phase.value,
        actions=[
            {"name": a.name, "display_name": a.display_name, "module": a.module_name, "params": a.params}
            for a in actions
        ],
    )


@router.post("/phase", response_model=PhaseResponse, responses=ERROR_RESPONSES)
def change_phase(
    request: PhaseRequest,
    state: GameStateService = Depends(get_game_state_service),
    manager: ModuleManager = Depends(get_module_manager),
    session: GameSession = Depends(get_game_session),
) -> PhaseResponse:
    """Move to a phase. Pending AI decisions for the old phase are dropped."""
    phase = _parse_enum(GamePhase, request.phase, "phase")
    return _enter_phase(phase, state, manager, session)


@router.post("/week/advance", response_model=PhaseResponse)
def advance_week(
    state: GameStateService = Depends(get_game_state_service),
    manager: ModuleManager = Depends(get_module_manager),
    session: GameSession = Depends(get_game_session),
) -> PhaseResponse:
    """Start the next week: roles reset, deals expire, quiet relationships decay."""
    return _enter_phase(GamePhase.HOH, state, manager, session, new_week=True)


# ── relationships & trust ──────────────────────────────────────


@router.post("/relationships", response_model=RelationshipResponse, responses=ERROR_RESPONSES)
def seed_relationship(
    request: RelationshipSeedRequest,
    state: GameStateService = Depends(get_game_state_service),
    relationships: RelationshipService = Depends(get_relationship_service),
    session: GameSession = Depends(get_game_session),
) -> RelationshipResponse:
    _require(state, request.guest_a, request.guest_b)
    try:
        rel = session.apply(
            relationships.seed_relationship, request.guest_a, request.guest_b, request.score
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    tier = get_tier_for_score(rel.score)
    return RelationshipResponse(
        guest_a=rel.guest_a,
        guest_b=rel.guest_b,
        score=rel.score,
        tier=tier.tier.value,
        label=tier.label,
        notes=rel.notes,
    )


@router.get("/relationships/{guest_a}/{guest_b}", response_model=RelationshipResponse, responses=ERROR_RESPONSES)
def get_relationship(
    guest_a: str,
    guest_b: str,
    state: GameStateService = Depends(get_game_state_service),
    relationships: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    """Score and tier of a pair. Pairs that never interacted are neutral."""
    _require(state, guest_a, guest_b)
    if guest_a == guest_b:
        raise HTTPException(status_code=400, detail="A houseguest has no relationship with themselves")
    rel = relationships.get(guest_a, guest_b)
    score = rel.score if rel else 0.0
    tier = get_tier_for_score(score)
    return RelationshipResponse(
        guest_a=guest_a,
        guest_b=guest_b,
        score=score,
        tier=tier.tier.value,
        label=tier.label,
        notes=rel.notes if rel else [],
    )


@router.get("/trust/{houseguest_id}", response_model=TrustResponse, responses=ERROR_RESPONSES)
def get_trust(
    houseguest_id: str,
    perspective: Optional[str] = None,
    state: GameStateService = Depends(get_game_state_service),
) -> TrustResponse:
    """Composite trust score, optionally from one houseguest's point of view."""
    _require(state, houseguest_id)
    if perspective is not None:
        _require(state, perspective)
    trust = compute_trust(state.build_snapshot(), houseguest_id, perspective)
    return TrustResponse(
        houseguest_id=houseguest_id,
        perspective=perspective,
        score=trust.score,
        reputation=trust.reputation,
        factors={
            "deal_trust": trust.factors.deal_trust,
            "interaction_trust": trust.factors.interaction_trust,
            "alliance_trust": trust.factors.alliance_trust,
            "trait_modifier": trust.factors.trait_modifier,
        },
    )


# ── deals & proposals ──────────────────────────────────────────


@router.get("/deals", response_model=list[DealInfo])
def list_deals(
    status: Optional[str] = None,
    deals: DealService = Depends(get_deal_service),
) -> list[DealInfo]:
    deal_status = _parse_enum(DealStatus, status, "deal status") if status else None
    return [_deal_info(d) for d in deals.get_deals(deal_status)]


@router.post("/deals/offer", response_model=OfferDealResponse, responses=ERROR_RESPONSES)
def offer_deal(
    request: OfferDealRequest,
    state: GameStateService = Depends(get_game_state_service),
    deals: DealService = Depends(get_deal_service),
    session: GameSession = Depends(get_game_session),
) -> OfferDealResponse:
    """The player offers a deal; the AI houseguest accepts, declines or counters."""
    _require(state, request.player_id, request.npc_id)
    deal_type = _parse_enum(DealType, request.deal_type, "deal type")
    context = DealContext(
        target_houseguest_id=request.target_houseguest_id,
        alliance_id=request.alliance_id,
    )
    with session.writer():
        try:
            result = deals.offer_deal(
                state.build_snapshot(), request.player_id, request.npc_id, deal_type, context
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    counter = result.counter_offer
    return OfferDealResponse(
        accepted=result.deal is not None,
        acceptance_chance=result.evaluation.acceptance_chance,
        reasoning=result.evaluation.reasoning,
        deal=_deal_info(result.deal) if result.deal else None,
        counter_offer_type=counter.counter_type.value if counter else None,
        counter_offer_reasoning=counter.reasoning if counter else None,
    )


@router.post("/proposals/generate", response_model=ProposalListResponse)
def generate_proposals(
    request: GenerateProposalsRequest,
    state: GameStateService = Depends(get_game_state_service),
    deals: DealService = Depends(get_deal_service),
    session: GameSession = Depends(get_game_session),
) -> ProposalListResponse:
    """AI houseguests pitch deals to the player for this social phase."""
    with session.writer():
        proposals = deals.generate_proposals(state.build_snapshot(), request.max_proposals)
    return ProposalListResponse(proposals=[_proposal_info(p) for p in proposals])


@router.get("/proposals/{player_id}", response_model=ProposalListResponse, responses=ERROR_RESPONSES)
def pending_proposals(
    player_id: str,
    state: GameStateService = Depends(get_game_state_service),
    deals: DealService = Depends(get_deal_service),
) -> ProposalListResponse:
    _require(state, player_id)
    return ProposalListResponse(
        proposals=[_proposal_info(p) for p in deals.get_pending_proposals(player_id)]
    )


@router.post(
    "/proposals/{proposal_id}/respond",
    response_model=ProposalAnswerResponse,
    responses=ERROR_RESPONSES,
)
def respond_to_proposal(
    proposal_id: str,
    request: ProposalAnswerRequest,
    deals: DealService = Depends(get_deal_service),
    session: GameSession = Depends(get_game_session),
) -> ProposalAnswerResponse:
    try:
        deal = session.apply(deals.respond_to_proposal, proposal_id, request.accept)
    except ValueError as e:
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))
    return ProposalAnswerResponse(
        proposal_id=proposal_id,
        accepted=request.accept,
        deal=_deal_info(deal) if deal else None,
    )


@router.get("/obligations", response_model=ObligationListResponse, responses=ERROR_RESPONSES)
def get_obligations(
    player_id: str,
    phase: Optional[str] = None,
    state: GameStateService = Depends(get_game_state_service),
    deals: DealService = Depends(get_deal_service),
) -> ObligationListResponse:
    """Deals the player's next move could break in the given (or current) phase."""
    _require(state, player_id)
    game_phase = _parse_enum(GamePhase, phase, "phase") if phase else state.get_phase()
    obligations = deals.get_obligations(state.build_snapshot(), player_id, game_phase)
    return ObligationListResponse(
        phase=game_phase.value,
        obligations=[
            ObligationInfo(
                deal=_deal_info(ob.deal),
                partner_id=ob.partner_id,
                partner_name=ob.partner_name,
                warning_message=ob.warning_message,
                consequence=ob.consequence,
                severity=ob.severity.value,
            )
            for ob in obligations
        ],
    )


# ── competitions ───────────────────────────────────────────────


@router.post("/competitions", response_model=CompetitionResponse, responses=ERROR_RESPONSES)
def run_competition(
    request: CompetitionRequest,
    state: GameStateService = Depends(get_game_state_service),
    competitions: CompetitionService = Depends(get_competition_service),
    session: GameSession = Depends(get_game_session),
) -> CompetitionResponse:
    comp_type = _parse_enum(CompetitionType, request.comp_type, "competition type")
    category = (
        _parse_enum(CompetitionCategory, request.category, "category")
        if request.category
        else None
    )
    try:
        comp = session.apply(
            competitions.run, comp_type, state.get_week(), request.participant_ids, category
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _competition_response(comp)


# ── player ceremonies ──────────────────────────────────────────


@router.post("/nominations", response_model=NominationsResponse, responses=ERROR_RESPONSES)
def nominate(
    request: NominationRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> NominationsResponse:
    """The HoH names nominees. Deals with the nominees react to the ceremony."""
    _require(state, *request.nominee_ids)
    with session.writer():
        snapshot = state.build_snapshot()
        try:
            decisions.apply_nominations(snapshot, request.nominee_ids)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return NominationsResponse(nominator_id=snapshot.hoh().id, nominee_ids=request.nominee_ids)


@router.post("/votes", response_model=VotesResponse, responses=ERROR_RESPONSES)
def cast_vote(
    request: VoteRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> VotesResponse:
    _require(state, request.voter_id, request.evict_id)
    with session.writer():
        try:
            decisions.record_vote(state.build_snapshot(), request.voter_id, request.evict_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return VotesResponse(
        votes={request.voter_id: request.evict_id}, tally={request.evict_id: 1}
    )


@router.post("/veto", response_model=VetoResponse, responses=ERROR_RESPONSES)
def decide_veto(
    request: VetoRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> VetoResponse:
    """The veto holder uses the veto on a nominee, or keeps nominations the same."""
    if request.save_id is not None:
        _require(state, request.save_id)
    with session.writer():
        try:
            decisions.apply_veto(state.build_snapshot(), request.use_veto, request.save_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return VetoResponse(
        used=request.use_veto,
        save_id=request.save_id if request.use_veto else None,
        source="player",
    )


@router.post("/replacement", response_model=ReplacementResponse, responses=ERROR_RESPONSES)
def name_replacement(
    request: ReplacementNomineeRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> ReplacementResponse:
    _require(state, request.nominee_id)
    with session.writer():
        try:
            decisions.apply_replacement(
                state.build_snapshot(), request.nominee_id, request.saved_id
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return ReplacementResponse(nominee_id=request.nominee_id, source="player")


@router.post("/finalists", response_model=FinalistResponse, responses=ERROR_RESPONSES)
def select_finalist(
    request: FinalistRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> FinalistResponse:
    """The final HoH picks who sits next to them in the final two."""
    _require(state, request.selected_id)
    with session.writer():
        snapshot = state.build_snapshot()
        try:
            decisions.record_finalist(snapshot, request.selected_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return FinalistResponse(selector_id=snapshot.hoh().id, selected_id=request.selected_id)


@router.post("/evict", response_model=RosterResponse, responses=ERROR_RESPONSES)
def evict(
    request: EvictRequest,
    state: GameStateService = Depends(get_game_state_service),
    session: GameSession = Depends(get_game_session),
) -> RosterResponse:
    """Take a houseguest out of the game (evicted, jury) or crown the winner."""
    _require(state, request.houseguest_id)
    status = _parse_enum(HouseguestStatus, request.status, "status")
    session.apply(state.set_status, request.houseguest_id, status)
    return _roster(state)


# ── AI decisions ───────────────────────────────────────────────


def _run_decision(session: GameSession, label: str, fn):
    """Queue an AI decision for the current phase and run it."""
    session.schedule(label, fn)
    results = [r for r in session.run_due() if r.label == label]
    if not results:
        raise HTTPException(status_code=409, detail=f"{label} was cancelled by a phase change")
    result = results[-1]
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)
    return result.value


@router.post("/nominations/ai", response_model=NominationsResponse, responses=ERROR_RESPONSES)
def ai_nominations(
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> NominationsResponse:
    snapshot = state.build_snapshot()
    nominee_ids = _run_decision(
        session, "nominations", lambda: decisions.ai_nominations(snapshot)
    )
    return NominationsResponse(nominator_id=snapshot.hoh().id, nominee_ids=nominee_ids)


@router.post("/votes/ai", response_model=VotesResponse, responses=ERROR_RESPONSES)
def ai_votes(
    request: AIVotesRequest,
    state: GameStateService = Depends(get_game_state_service),
    decisions: DecisionService = Depends(get_decision_service),
    session: GameSession = Depends(get_game_session),
) -> VotesResponse:
    """Every eligible AI houseguest casts an eviction vote."""
    snapshot = state.build_snapshot()
    votes = _run_decision(
        session,
        "eviction_votes",
        lambda: decisions.ai_eviction_votes(snapshot, request.voter_ids),
    )
    return VotesResponse(votes=votes, tally=dict(Counter(votes.values())))


@router.post("/veto/ai", response_model=VetoResponse, responses=ERROR_RESPONSES)
def ai_veto(
    state: GameStateService = Depends(get_game_state_service),
    ai_decisions: AIDecisionService = Depends(get_ai_decision_service),
    session: GameSession = Depends(get_game_session),
) -> VetoResponse:
    snapshot = state.build_snapshot()
    result = _run_decision(session, "veto", lambda: ai_decisions.decide_veto(snapshot))
    return VetoResponse(
        used=result.decision.use_veto,
        save_id=result.decision.save_id,
        reason=result.decision.reason,
        source=result.source,
    )


@router.post("/replacement/ai", response_model=ReplacementResponse, responses=ERROR_RESPONSES)
def ai_replacement(
    request: ReplacementRequest,
    state: GameStateService = Depends(get_game_state_service),
    ai_decisions: AIDecisionService = Depends(get_ai_decision_service),
    session: GameSession = Depends(get_game_session),
) -> ReplacementResponse:
    snapshot = state.build_snapshot()
    result = _run_decision(
        session,
        "replacement",
        lambda: ai_decisions.choose_replacement(snapshot, request.saved_id),
    )
    return ReplacementResponse(nominee_id=result.decision, source=result.source)
