"""Houseguest domain models

Pure dataclasses, no DB dependency.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class HouseguestStatus(str, Enum):
    """Houseguest lifecycle status"""

    ACTIVE = "Active"
    EVICTED = "Evicted"
    JURY = "Jury"
    WINNER = "Winner"
    RUNNER_UP = "Runner-Up"


class PersonalityTrait(str, Enum):
    """Fixed trait vocabulary"""

    COMPETITIVE = "Competitive"
    STRATEGIC = "Strategic"
    LOYAL = "Loyal"
    EMOTIONAL = "Emotional"
    FUNNY = "Funny"
    CHARMING = "Charming"
    MANIPULATIVE = "Manipulative"
    ANALYTICAL = "Analytical"
    IMPULSIVE = "Impulsive"
    DECEPTIVE = "Deceptive"
    SOCIAL = "Social"
    INTROVERTED = "Introverted"
    STUBBORN = "Stubborn"
    FLEXIBLE = "Flexible"
    INTUITIVE = "Intuitive"
    SNEAKY = "Sneaky"
    CONFRONTATIONAL = "Confrontational"
    FLOATER = "Floater"
    PARANOID = "Paranoid"


@dataclass
class HouseguestStats:
    """Stat vector, each value roughly 1~10"""

    physical: int = 5
    mental: int = 5
    endurance: int = 5
    social: int = 5
    loyalty: int = 5
    strategic: int = 5
    luck: int = 5
    competition: int = 5

    def to_dict(self) -> Dict[str, int]:
        return {
            "physical": self.physical,
            "mental": self.mental,
            "endurance": self.endurance,
            "social": self.social,
            "loyalty": self.loyalty,
            "strategic": self.strategic,
            "luck": self.luck,
            "competition": self.competition,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HouseguestStats":
        return cls(**{k: int(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class CompetitionWins:
    """Competition win counters"""

    hoh: int = 0
    pov: int = 0
    other: int = 0

    @property
    def total_power(self) -> int:
        """HoH + PoV wins, the ones other houseguests fear."""
        return self.hoh + self.pov


@dataclass
class Houseguest:
    """A participant in the house"""

    id: str
    name: str
    stats: HouseguestStats = field(default_factory=HouseguestStats)
    traits: List[str] = field(default_factory=list)
    status: HouseguestStatus = HouseguestStatus.ACTIVE

    # current role flags
    is_hoh: bool = False
    is_nominated: bool = False
    is_pov_holder: bool = False
    is_player: bool = False

    competitions_won: CompetitionWins = field(default_factory=CompetitionWins)

    @property
    def is_active(self) -> bool:
        return self.status == HouseguestStatus.ACTIVE

    def has_trait(self, trait: str) -> bool:
        return trait_value(trait) in {trait_value(t) for t in self.traits}


def trait_value(trait: Any) -> str:
    """Plain string for a trait given as str or PersonalityTrait."""
    return trait.value if isinstance(trait, PersonalityTrait) else str(trait)
