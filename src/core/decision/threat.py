"""Threat assessment

How dangerous a houseguest looks, 0~100:
competition 0~40, social 0~30, alliance 0~20, potential 0~10.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest

COMPETITION_CAP = 40.0
SOCIAL_CAP = 30.0
ALLIANCE_CAP = 20.0
POTENTIAL_CAP = 10.0
DEFAULT_SOCIAL_THREAT = 15.0


@dataclass
class ThreatBreakdown:
    competition: float
    social: float
    alliance: float
    potential: float
    total: float


def competition_threat(target: Houseguest) -> float:
    wins = target.competitions_won
    return min(COMPETITION_CAP, wins.hoh * 8.0 + wins.pov * 6.0)


def social_threat(target: Houseguest, snapshot: Optional[GameSnapshot]) -> float:
    """Well-liked houseguests are harder to get out."""
    if snapshot is None:
        return DEFAULT_SOCIAL_THREAT
    others = [h for h in snapshot.active_houseguests() if h.id != target.id]
    if not others:
        return DEFAULT_SOCIAL_THREAT
    avg = sum(snapshot.relationship(h.id, target.id) for h in others) / len(others)
    return min(SOCIAL_CAP, max(0.0, (avg + 100) * 0.15))


def alliance_threat(target: Houseguest, snapshot: Optional[GameSnapshot]) -> float:
    if snapshot is None:
        return 0.0
    threat = sum(
        len(a.member_ids) * 4.0
        for a in snapshot.alliances
        if a.is_active and a.has_member(target.id)
    )
    return min(ALLIANCE_CAP, threat)


def potential_threat(target: Houseguest) -> float:
    stats = target.stats
    threat = stats.competition / 10 * 3 + stats.strategic / 10 * 2
    # social + strategic together wins juries
    if stats.social >= 7 and stats.strategic >= 7:
        threat += 2
    return min(POTENTIAL_CAP, threat)


def threat_breakdown(
    evaluator: Houseguest, target: Houseguest, snapshot: Optional[GameSnapshot]
) -> ThreatBreakdown:
    comp = competition_threat(target)
    social = social_threat(target, snapshot)
    alliance = alliance_threat(target, snapshot)
    potential = potential_threat(target)
    return ThreatBreakdown(
        competition=comp,
        social=social,
        alliance=alliance,
        potential=potential,
        total=min(100.0, comp + social + alliance + potential),
    )


def assess_threat(
    evaluator: Houseguest, target: Houseguest, snapshot: Optional[GameSnapshot]
) -> float:
    return threat_breakdown(evaluator, target, snapshot).total


def rank_by_threat(
    evaluator: Houseguest, snapshot: GameSnapshot
) -> List[Tuple[Houseguest, ThreatBreakdown]]:
    """[(houseguest, breakdown)] most threatening first, ties by id."""
    ranked = [
        (h, threat_breakdown(evaluator, h, snapshot))
        for h in snapshot.active_houseguests()
        if h.id != evaluator.id
    ]
    ranked.sort(key=lambda pair: (-pair[1].total, pair[0].id))
    return ranked


def is_major_threat(
    evaluator: Houseguest, target: Houseguest, snapshot: Optional[GameSnapshot]
) -> bool:
    return (
        assess_threat(evaluator, target, snapshot) >= 50
        or target.competitions_won.hoh >= 2
    )


def get_threat_description(level: float) -> str:
    if level >= 80:
        return "Extreme Threat"
    if level >= 60:
        return "High Threat"
    if level >= 40:
        return "Moderate Threat"
    if level >= 20:
        return "Low Threat"
    return "Minimal Threat"
