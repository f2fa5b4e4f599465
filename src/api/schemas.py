"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class HouseguestIn(BaseModel):
    """A houseguest joining the season"""

    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=80)
    stats: dict[str, int] = Field(default_factory=dict, description="1~10 stat values")
    traits: list[str] = Field(default_factory=list)
    is_player: bool = False


class RegisterHouseguestsRequest(BaseModel):
    houseguests: list[HouseguestIn] = Field(..., min_length=1)


class RelationshipSeedRequest(BaseModel):
    guest_a: str
    guest_b: str
    score: float = Field(..., ge=-100, le=100)


class PhaseRequest(BaseModel):
    phase: str = Field(..., description="GamePhase value, e.g. 'HoH', 'SocialInteraction'")


class RoleRequest(BaseModel):
    """Manually assign HoH / veto holder / nominees"""

    hoh_id: Optional[str] = None
    pov_holder_id: Optional[str] = None
    nominee_ids: Optional[list[str]] = None


class GenerateProposalsRequest(BaseModel):
    max_proposals: Optional[int] = Field(default=None, ge=0)


class ProposalAnswerRequest(BaseModel):
    accept: bool


class OfferDealRequest(BaseModel):
    player_id: str
    npc_id: str
    deal_type: str
    target_houseguest_id: Optional[str] = None
    alliance_id: Optional[str] = None


class CompetitionRequest(BaseModel):
    comp_type: str = Field(..., description="HoH, PoV, FinalHoH1, FinalHoH2, FinalHoH3")
    participant_ids: Optional[list[str]] = None
    category: Optional[str] = None


class AIVotesRequest(BaseModel):
    voter_ids: Optional[list[str]] = None


class ReplacementRequest(BaseModel):
    saved_id: Optional[str] = None


class NominationRequest(BaseModel):
    """The HoH's nominees, named by the player"""

    nominee_ids: list[str] = Field(..., min_length=1)


class VoteRequest(BaseModel):
    voter_id: str
    evict_id: str


class VetoRequest(BaseModel):
    use_veto: bool
    save_id: Optional[str] = None


class ReplacementNomineeRequest(BaseModel):
    nominee_id: str
    saved_id: Optional[str] = None


class FinalistRequest(BaseModel):
    selected_id: str


class EvictRequest(BaseModel):
    houseguest_id: str
    status: str = Field(default="Evicted", description="Evicted, Jury or Winner")


# === Response Schemas ===


class HouseguestInfo(BaseModel):
    id: str
    name: str
    status: str
    traits: list[str] = []
    is_hoh: bool = False
    is_nominated: bool = False
    is_pov_holder: bool = False
    is_player: bool = False
    hoh_wins: int = 0
    pov_wins: int = 0


class RosterResponse(BaseModel):
    success: bool
    week: int
    phase: str
    houseguests: list[HouseguestInfo] = []


class TrustResponse(BaseModel):
    houseguest_id: str
    perspective: Optional[str] = None
    score: int
    reputation: str
    factors: dict[str, float] = {}


class RelationshipResponse(BaseModel):
    guest_a: str
    guest_b: str
    score: float
    tier: str
    label: str
    notes: list[str] = []


class DealInfo(BaseModel):
    id: str
    type: str
    proposer_id: str
    recipient_id: str
    status: str
    week: int
    title: str = ""
    description: str = ""
    trust_impact: str = "medium"
    target_houseguest_id: Optional[str] = None
    expires_week: Optional[int] = None


class ProposalInfo(BaseModel):
    id: str
    from_npc_id: str
    from_npc_name: str
    to_player_id: str
    reasoning: str
    response: str
    deal: DealInfo


class ProposalListResponse(BaseModel):
    proposals: list[ProposalInfo] = []


class ProposalAnswerResponse(BaseModel):
    proposal_id: str
    accepted: bool
    deal: Optional[DealInfo] = None


class OfferDealResponse(BaseModel):
    accepted: bool
    acceptance_chance: float
    reasoning: str
    deal: Optional[DealInfo] = None
    counter_offer_type: Optional[str] = None
    counter_offer_reasoning: Optional[str] = None


class ObligationInfo(BaseModel):
    deal: DealInfo
    partner_id: str
    partner_name: str
    warning_message: str
    consequence: str
    severity: str


class ObligationListResponse(BaseModel):
    phase: str
    obligations: list[ObligationInfo] = []


class CompetitionResultInfo(BaseModel):
    houseguest_id: str
    placement: int
    score: float
    eliminated: bool = False
    eliminated_at: Optional[float] = None


class CompetitionResponse(BaseModel):
    id: str
    name: str
    category: str
    type: str
    week: int
    description: str
    winner_id: Optional[str] = None
    results: list[CompetitionResultInfo] = []


class VotesResponse(BaseModel):
    votes: dict[str, str] = {}
    tally: dict[str, int] = {}


class NominationsResponse(BaseModel):
    nominator_id: str
    nominee_ids: list[str]


class VetoResponse(BaseModel):
    used: bool
    save_id: Optional[str] = None
    reason: str = ""
    source: str


class ReplacementResponse(BaseModel):
    nominee_id: Optional[str] = None
    source: str


class FinalistResponse(BaseModel):
    selector_id: str
    selected_id: str


class PhaseResponse(BaseModel):
    week: int
    phase: str
    actions: list[dict[str, Any]] = []


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
