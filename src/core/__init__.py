"""Big Brother decision engine core"""
__version__ = "0.1.0"

from src.core.alliance.models import Alliance, AllianceStatus
from src.core.competition.models import Competition, CompetitionCategory, CompetitionType
from src.core.deal.models import Deal, DealStatus, DealType
from src.core.game_state import GamePhase, GameSnapshot
from src.core.houseguest.models import Houseguest, HouseguestStats, PersonalityTrait
from src.core.relationship.models import Relationship, RelationshipDelta, RelationshipTier

__all__ = [
    "Alliance",
    "AllianceStatus",
    "Competition",
    "CompetitionCategory",
    "CompetitionType",
    "Deal",
    "DealStatus",
    "DealType",
    "GamePhase",
    "GameSnapshot",
    "Houseguest",
    "HouseguestStats",
    "PersonalityTrait",
    "Relationship",
    "RelationshipDelta",
    "RelationshipTier",
]
