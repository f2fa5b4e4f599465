"""Deal core package

Only the models are re-exported here; lifecycle, obligations, proposals
and evaluation are imported from their modules.
"""

from src.core.deal.models import (
    DEAL_TYPE_INFO,
    CounterOffer,
    Deal,
    DealContext,
    DealEvaluation,
    DealObligation,
    DealStatus,
    DealType,
    NPCProposal,
    ObligationSeverity,
    ProposalResponse,
    TrustImpact,
)

__all__ = [
    "DEAL_TYPE_INFO",
    "CounterOffer",
    "Deal",
    "DealContext",
    "DealEvaluation",
    "DealObligation",
    "DealStatus",
    "DealType",
    "NPCProposal",
    "ObligationSeverity",
    "ProposalResponse",
    "TrustImpact",
]
