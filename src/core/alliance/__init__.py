"""Alliance core package"""

from src.core.alliance.models import Alliance, AllianceStatus
from src.core.alliance.stability import (
    STABILITY_ON_BROKEN,
    STABILITY_ON_FULFILLED,
    adjust_stability,
    are_allied,
    calculate_stability,
    shared_active_alliances,
)

__all__ = [
    "Alliance",
    "AllianceStatus",
    "STABILITY_ON_BROKEN",
    "STABILITY_ON_FULFILLED",
    "adjust_stability",
    "are_allied",
    "calculate_stability",
    "shared_active_alliances",
]
