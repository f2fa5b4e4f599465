"""Deal domain models

Deal lifecycle: pending -> active -> fulfilled | broken | expired.
A pending deal can also be declined or expire unanswered.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class DealType(str, Enum):
    TARGET_AGREEMENT = "target_agreement"  # target a houseguest if either wins HoH
    SAFETY_AGREEMENT = "safety_agreement"  # never nominate each other
    VOTE_TOGETHER = "vote_together"  # vote as a block this week
    VETO_USE = "veto_use"  # use the veto on the partner
    INFORMATION_SHARING = "information_sharing"
    FINAL_TWO = "final_two"
    PARTNERSHIP = "partnership"
    ALLIANCE_INVITE = "alliance_invite"


class DealStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FULFILLED = "fulfilled"
    BROKEN = "broken"
    EXPIRED = "expired"
    DECLINED = "declined"


class TrustImpact(str, Enum):
    MINOR = "minor"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


TERMINAL_STATUSES = frozenset(
    {DealStatus.FULFILLED, DealStatus.BROKEN, DealStatus.EXPIRED, DealStatus.DECLINED}
)


@dataclass(frozen=True)
class DealTypeInfo:
    title: str
    description: str
    default_impact: TrustImpact


DEAL_TYPE_INFO: Dict[DealType, DealTypeInfo] = {
    DealType.TARGET_AGREEMENT: DealTypeInfo(
        "Target Agreement",
        "Agree to target a specific houseguest if either wins HoH",
        TrustImpact.HIGH,
    ),
    DealType.SAFETY_AGREEMENT: DealTypeInfo(
        "Safety Pact", "Promise not to nominate each other", TrustImpact.HIGH
    ),
    DealType.VOTE_TOGETHER: DealTypeInfo(
        "Voting Block", "Vote together this week", TrustImpact.MEDIUM
    ),
    DealType.VETO_USE: DealTypeInfo(
        "Veto Commitment",
        "Use veto on partner if they are on the block",
        TrustImpact.CRITICAL,
    ),
    DealType.INFORMATION_SHARING: DealTypeInfo(
        "Information Sharing",
        "Share all game intel with each other",
        TrustImpact.MINOR,
    ),
    DealType.FINAL_TWO: DealTypeInfo(
        "Final Two Deal", "Take each other to the final 2", TrustImpact.CRITICAL
    ),
    DealType.PARTNERSHIP: DealTypeInfo(
        "Partnership", "Work together moving forward", TrustImpact.MEDIUM
    ),
    DealType.ALLIANCE_INVITE: DealTypeInfo(
        "Alliance Invitation",
        "Form or join an official alliance",
        TrustImpact.HIGH,
    ),
}


@dataclass
class DealContext:
    target_houseguest_id: Optional[str] = None
    alliance_id: Optional[str] = None
    upgrade_from: Optional[str] = None


@dataclass
class Deal:
    """A typed bilateral agreement"""

    id: str
    type: DealType
    proposer_id: str
    recipient_id: str
    week: int
    status: DealStatus = DealStatus.PENDING
    trust_impact: TrustImpact = TrustImpact.MEDIUM
    title: str = ""
    description: str = ""
    context: DealContext = field(default_factory=DealContext)
    expires_week: Optional[int] = None

    def involves(self, houseguest_id: str) -> bool:
        return houseguest_id in (self.proposer_id, self.recipient_id)

    def partner_of(self, houseguest_id: str) -> Optional[str]:
        if houseguest_id == self.proposer_id:
            return self.recipient_id
        if houseguest_id == self.recipient_id:
            return self.proposer_id
        return None

    def is_between(self, a: str, b: str) -> bool:
        return {self.proposer_id, self.recipient_id} == {a, b}

    @property
    def is_active(self) -> bool:
        return self.status == DealStatus.ACTIVE


class ProposalResponse(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


@dataclass
class NPCProposal:
    """Player-facing offer from an AI houseguest. Holds an unsaved deal draft."""

    id: str
    from_npc_id: str
    from_npc_name: str
    to_player_id: str
    deal: Deal
    reasoning: str
    timestamp: float
    response: ProposalResponse = ProposalResponse.PENDING


class ObligationSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class DealObligation:
    """Advisory warning that an upcoming action may violate a deal"""

    deal: Deal
    partner_id: str
    partner_name: str
    warning_message: str
    consequence: str
    severity: ObligationSeverity


@dataclass
class DealEvaluation:
    """How an AI houseguest feels about a deal offered by the player"""

    acceptance_chance: float  # 5 ~ 95
    would_accept: bool
    reasoning: str


@dataclass
class CounterOffer:
    counter_type: DealType
    reasoning: str
    acceptance_chance: float


def active_deals_between(deals: List[Deal], a: str, b: str) -> List[Deal]:
    return [d for d in deals if d.is_active and d.is_between(a, b)]


def active_deals_for(deals: List[Deal], houseguest_id: str) -> List[Deal]:
    return [d for d in deals if d.is_active and d.involves(houseguest_id)]
