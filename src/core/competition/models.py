"""Competition domain models

Category weight tables, the name pool and the resolved Competition record.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class CompetitionCategory(str, Enum):
    ENDURANCE = "Endurance"
    PHYSICAL = "Physical"
    MENTAL = "Mental"
    SKILL = "Skill"
    CRAPSHOOT = "Crapshoot"


class CompetitionType(str, Enum):
    HOH = "HoH"
    POV = "PoV"
    FINAL_HOH_1 = "FinalHoH1"
    FINAL_HOH_2 = "FinalHoH2"
    FINAL_HOH_3 = "FinalHoH3"


@dataclass(frozen=True)
class CompetitionWeights:
    physical: float
    mental: float
    endurance: float
    social: float
    luck: float

    @property
    def total(self) -> float:
        return self.physical + self.mental + self.endurance + self.social + self.luck


# each row sums to 1.0
COMPETITION_WEIGHTS: Dict[CompetitionCategory, CompetitionWeights] = {
    CompetitionCategory.ENDURANCE: CompetitionWeights(0.3, 0.1, 0.5, 0.0, 0.1),
    CompetitionCategory.PHYSICAL: CompetitionWeights(0.5, 0.1, 0.2, 0.0, 0.2),
    CompetitionCategory.MENTAL: CompetitionWeights(0.0, 0.6, 0.1, 0.1, 0.2),
    CompetitionCategory.SKILL: CompetitionWeights(0.3, 0.3, 0.1, 0.0, 0.3),
    CompetitionCategory.CRAPSHOOT: CompetitionWeights(0.0, 0.1, 0.0, 0.0, 0.9),
}

COMPETITION_NAMES: Dict[CompetitionCategory, List[str]] = {
    CompetitionCategory.ENDURANCE: [
        "Wall of Champions",
        "Pressure Cooker",
        "Hang in There",
        "Slip & Slide",
        "Swinging in the Rain",
    ],
    CompetitionCategory.PHYSICAL: [
        "Ready, Set, Whoa!",
        "Big Brother Knockout",
        "Counting Sheep",
        "Berry Bold",
        "Bowled Over",
    ],
    CompetitionCategory.MENTAL: [
        "Before or After",
        "Spelling Bee",
        "What the Bleep?",
        "Majority Rules",
        "Face the Facts",
    ],
    CompetitionCategory.SKILL: [
        "Egg Head",
        "Chicken Wire",
        "BB Golf",
        "Ricochets",
        "Putt Putt",
    ],
    CompetitionCategory.CRAPSHOOT: [
        "Big Brother Roulette",
        "Lucky Lottery",
        "Spin Cycle",
        "Roll the Dice",
        "Wheel of Fortune",
    ],
}

CATEGORY_DESCRIPTIONS: Dict[CompetitionCategory, str] = {
    CompetitionCategory.ENDURANCE: "Outlast the competition in this test of willpower!",
    CompetitionCategory.PHYSICAL: "Strength and agility will determine the winner!",
    CompetitionCategory.MENTAL: "Use your brain to solve puzzles and answer questions!",
    CompetitionCategory.SKILL: "Precision and focus are key to victory!",
    CompetitionCategory.CRAPSHOOT: "Anyone can win this game of chance!",
}

# three-part final HoH
FINAL_HOH_CATEGORIES: Dict[CompetitionType, CompetitionCategory] = {
    CompetitionType.FINAL_HOH_1: CompetitionCategory.ENDURANCE,
    CompetitionType.FINAL_HOH_2: CompetitionCategory.SKILL,
    CompetitionType.FINAL_HOH_3: CompetitionCategory.MENTAL,
}


@dataclass
class CompetitionResult:
    houseguest_id: str
    placement: int
    score: float
    eliminated: bool = False
    eliminated_at: Optional[float] = None


@dataclass
class Competition:
    """One resolved competition. Immutable once is_complete is set."""

    id: str
    name: str
    category: CompetitionCategory
    type: CompetitionType
    week: int
    description: str = ""
    participants: List[str] = field(default_factory=list)
    results: List[CompetitionResult] = field(default_factory=list)
    winner_id: Optional[str] = None
    is_complete: bool = False

    def placement_of(self, houseguest_id: str) -> Optional[int]:
        for result in self.results:
            if result.houseguest_id == houseguest_id:
                return result.placement
        return None
