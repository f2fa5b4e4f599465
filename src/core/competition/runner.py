"""Competition resolver

Placement competitions score each participant from weighted stats with
±25% noise. Endurance competitions eliminate the weakest holder step by
step until one is left.
"""

import random
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from src.core.competition.models import (
    CATEGORY_DESCRIPTIONS,
    COMPETITION_NAMES,
    COMPETITION_WEIGHTS,
    FINAL_HOH_CATEGORIES,
    Competition,
    CompetitionCategory,
    CompetitionResult,
    CompetitionType,
)
from src.core.errors import EmptyParticipantsError
from src.core.houseguest.models import Houseguest, HouseguestStats
from src.core.logging import get_logger

logger = get_logger(__name__)

CLUTCH_MULTIPLIER = 0.5
CRAPSHOOT_LUCK_BONUS = 3.0
ENDURANCE_WINNER_MARGIN = 10.0

# cumulative thresholds for a random category draw
CATEGORY_ROLL = (
    (0.25, CompetitionCategory.ENDURANCE),
    (0.45, CompetitionCategory.PHYSICAL),
    (0.65, CompetitionCategory.MENTAL),
    (0.85, CompetitionCategory.SKILL),
)


@dataclass
class CompetitionOptions:
    type: CompetitionType
    week: int
    participants: List[Houseguest]
    category: Optional[CompetitionCategory] = None
    nominees: Sequence[str] = field(default_factory=tuple)


def select_category(
    comp_type: CompetitionType, rng: Optional[random.Random] = None
) -> CompetitionCategory:
    if comp_type in FINAL_HOH_CATEGORIES:
        return FINAL_HOH_CATEGORIES[comp_type]
    rng = rng or random.Random()
    roll = rng.random()
    for threshold, category in CATEGORY_ROLL:
        if roll < threshold:
            return category
    return CompetitionCategory.CRAPSHOOT


def get_clutch_bonus(competition_stat: float, is_nominated: bool) -> float:
    """Houseguests on the block get a bump from their Competition stat."""
    if not is_nominated:
        return 0.0
    return competition_stat * CLUTCH_MULTIPLIER


def calculate_score(
    stats: HouseguestStats,
    category: CompetitionCategory,
    is_nominated: bool = False,
    rng: Optional[random.Random] = None,
) -> float:
    rng = rng or random.Random()
    weights = COMPETITION_WEIGHTS[category]
    base = (
        stats.physical * weights.physical
        + stats.mental * weights.mental
        + stats.endurance * weights.endurance
        + stats.social * weights.social
        + stats.luck * weights.luck
    )
    factor = rng.uniform(0.75, 1.25)
    luck_bonus = (
        rng.random() * CRAPSHOOT_LUCK_BONUS
        if category == CompetitionCategory.CRAPSHOOT
        else 0.0
    )
    return base * factor + luck_bonus + get_clutch_bonus(stats.competition, is_nominated)


def _random_name(category: CompetitionCategory, rng: random.Random) -> str:
    return rng.choice(COMPETITION_NAMES[category])


def _require_participants(options: CompetitionOptions) -> None:
    if not options.participants:
        raise EmptyParticipantsError(
            f"{options.type.value} competition in week {options.week} has no participants"
        )


def run_competition(
    options: CompetitionOptions, rng: Optional[random.Random] = None
) -> Competition:
    """Placement-based competition. Placements are 1..N, ties by id."""
    _require_participants(options)
    rng = rng or random.Random()
    category = options.category or select_category(options.type, rng)
    name = _random_name(category, rng)
    nominees = set(options.nominees)

    scored = [
        (hg, calculate_score(hg.stats, category, hg.id in nominees, rng))
        for hg in options.participants
    ]
    scored.sort(key=lambda pair: (-pair[1], pair[0].id))

    results = [
        CompetitionResult(houseguest_id=hg.id, placement=index + 1, score=score)
        for index, (hg, score) in enumerate(scored)
    ]
    winner = scored[0][0]
    if winner.id in nominees and winner.stats.competition > 0:
        logger.debug(
            f"Clutch win: {winner.name} won from the block "
            f"(competition stat {winner.stats.competition})"
        )

    return Competition(
        id=str(uuid.uuid4()),
        name=name,
        category=category,
        type=options.type,
        week=options.week,
        description=f"{name} - {CATEGORY_DESCRIPTIONS[category]}",
        participants=[hg.id for hg in options.participants],
        results=results,
        winner_id=winner.id,
        is_complete=True,
    )


def run_endurance_competition(
    options: CompetitionOptions, rng: Optional[random.Random] = None
) -> Competition:
    """Last one standing. Results record the time each houseguest dropped."""
    _require_participants(options)
    rng = rng or random.Random()
    category = CompetitionCategory.ENDURANCE
    name = _random_name(category, rng)

    remaining = list(options.participants)
    dropped = []  # (houseguest, time) in elimination order
    clock = 0.0
    while len(remaining) > 1:
        clock += 10 + rng.random() * 20
        survival = [
            (hg, (hg.stats.endurance + hg.stats.physical * 0.3) * rng.uniform(0.5, 1.0))
            for hg in remaining
        ]
        eliminated = min(survival, key=lambda pair: (pair[1], pair[0].id))[0]
        dropped.append((eliminated, clock))
        remaining.remove(eliminated)

    winner = remaining[0]
    results = [
        CompetitionResult(
            houseguest_id=winner.id,
            placement=1,
            score=clock + ENDURANCE_WINNER_MARGIN,
            eliminated=False,
        )
    ]
    for index, (hg, time) in enumerate(reversed(dropped)):
        results.append(
            CompetitionResult(
                houseguest_id=hg.id,
                placement=index + 2,
                score=time,
                eliminated=True,
                eliminated_at=time,
            )
        )

    return Competition(
        id=str(uuid.uuid4()),
        name=name,
        category=category,
        type=options.type,
        week=options.week,
        description=f"{name} - Last one standing wins!",
        participants=[hg.id for hg in options.participants],
        results=results,
        winner_id=winner.id,
        is_complete=True,
    )
