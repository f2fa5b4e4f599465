"""Read-only game snapshot handed to the decision core

Services build a GameSnapshot from DB rows; core functions only read it
and return scores, records or RelationshipDelta objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol

from src.core.alliance.models import Alliance
from src.core.deal.models import Deal
from src.core.houseguest.models import Houseguest
from src.core.relationship.store import InMemoryRelationshipStore, RelationshipStore


class GamePhase(str, Enum):
    SETUP = "Setup"
    HOH = "HoH"
    NOMINATION = "Nomination"
    POV = "PoV"
    POV_MEETING = "PoVMeeting"
    EVICTION = "Eviction"
    SOCIAL_INTERACTION = "SocialInteraction"
    FINAL_HOH = "FinalHoH"
    JURY_VOTING = "JuryVoting"
    GAME_OVER = "GameOver"


class InteractionProvider(Protocol):
    """Per-pair interaction trust (0~100) from one houseguest toward another."""

    def get_trust_score(self, from_id: str, to_id: str) -> float: ...


@dataclass
class GameSnapshot:
    """Houseguests, relationships, deals and alliances at one point in time"""

    houseguests: List[Houseguest] = field(default_factory=list)
    relationships: RelationshipStore = field(default_factory=InMemoryRelationshipStore)
    deals: List[Deal] = field(default_factory=list)
    alliances: List[Alliance] = field(default_factory=list)
    week: int = 1
    phase: GamePhase = GamePhase.SETUP
    interactions: Optional[InteractionProvider] = None

    def __post_init__(self) -> None:
        self._by_id: Dict[str, Houseguest] = {h.id: h for h in self.houseguests}

    def get_houseguest(self, houseguest_id: str) -> Optional[Houseguest]:
        return self._by_id.get(houseguest_id)

    def active_houseguests(self) -> List[Houseguest]:
        return [h for h in self.houseguests if h.is_active]

    def player(self) -> Optional[Houseguest]:
        for h in self.houseguests:
            if h.is_player and h.is_active:
                return h
        return None

    def hoh(self) -> Optional[Houseguest]:
        for h in self.houseguests:
            if h.is_hoh and h.is_active:
                return h
        return None

    def nominees(self) -> List[Houseguest]:
        return [h for h in self.houseguests if h.is_nominated and h.is_active]

    def relationship(self, a: str, b: str) -> float:
        return self.relationships.get_relationship(a, b)

    def name_of(self, houseguest_id: str) -> str:
        h = self.get_houseguest(houseguest_id)
        return h.name if h else houseguest_id
