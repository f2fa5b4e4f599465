"""Alliance membership queries and stability arithmetic"""

from typing import Callable, Iterable, List

from src.core.alliance.models import Alliance
from src.core.relationship.calculations import clamp_unit

# stability change when a deal between two members resolves
STABILITY_ON_FULFILLED = 3.0
STABILITY_ON_BROKEN = -10.0


def shared_active_alliances(
    alliances: Iterable[Alliance], a: str, b: str
) -> List[Alliance]:
    """Active alliances containing both houseguests."""
    return [
        al
        for al in alliances
        if al.is_active and al.has_member(a) and al.has_member(b)
    ]


def are_allied(alliances: Iterable[Alliance], a: str, b: str) -> bool:
    return bool(shared_active_alliances(alliances, a, b))


def calculate_stability(
    alliance: Alliance, get_relationship: Callable[[str, str], float]
) -> float:
    """Stability from the average pairwise relationship of the members.

    Two-person alliances take a 10% penalty, six or more lose 5% per
    member over five.
    """
    members = alliance.member_ids
    if len(members) <= 1:
        return 100.0

    total = 0.0
    pairs = 0
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            total += get_relationship(members[i], members[j])
            pairs += 1
    if pairs == 0:
        return 50.0

    stability = ((total / pairs) + 100) / 200 * 100
    if len(members) == 2:
        stability *= 0.9
    elif len(members) >= 6:
        stability *= 1 - (len(members) - 5) * 0.05
    return clamp_unit(stability)


def adjust_stability(current: float, change: float) -> float:
    return clamp_unit(current + change)
