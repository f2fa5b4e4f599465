"""Competition resolver core package"""

from src.core.competition.models import (
    COMPETITION_NAMES,
    COMPETITION_WEIGHTS,
    Competition,
    CompetitionCategory,
    CompetitionResult,
    CompetitionType,
    CompetitionWeights,
)
from src.core.competition.runner import (
    CompetitionOptions,
    calculate_score,
    get_clutch_bonus,
    run_competition,
    run_endurance_competition,
    select_category,
)

__all__ = [
    "COMPETITION_NAMES",
    "COMPETITION_WEIGHTS",
    "Competition",
    "CompetitionCategory",
    "CompetitionResult",
    "CompetitionType",
    "CompetitionWeights",
    "CompetitionOptions",
    "calculate_score",
    "get_clutch_bonus",
    "run_competition",
    "run_endurance_competition",
    "select_category",
]
