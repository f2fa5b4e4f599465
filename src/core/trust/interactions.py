"""Interaction tracking between houseguests

Typed interactions with default impacts. Minor ones fade after the
retention window, betrayals and big moments never do.
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from src.core.logging import get_logger

logger = get_logger(__name__)

RECENT_WEEKS = 2
BETRAYAL_PENALTY = 20.0


class InteractionType(str, Enum):
    CONVERSATION = "conversation"
    STRATEGIC_DISCUSSION = "strategic_discussion"
    PROMISE_MADE = "promise_made"
    PROMISE_KEPT = "promise_kept"
    PROMISE_BROKEN = "promise_broken"
    NOMINATED = "nominated"
    SAVED_WITH_VETO = "saved_with_veto"
    VOTED_AGAINST = "voted_against"
    VOTED_FOR = "voted_for"
    ALLIANCE_FORMED = "alliance_formed"
    ALLIANCE_BETRAYED = "alliance_betrayed"
    RUMOR_SPREAD = "rumor_spread"
    DEFENDED = "defended"
    ATTACKED = "attacked"
    HELPED = "helped"
    IGNORED = "ignored"
    DEAL_PROPOSED = "deal_proposed"
    DEAL_ACCEPTED = "deal_accepted"
    DEAL_FULFILLED = "deal_fulfilled"
    DEAL_BROKEN = "deal_broken"


# type -> (default impact, decays)
INTERACTION_DEFAULTS: Dict[InteractionType, Tuple[float, bool]] = {
    InteractionType.CONVERSATION: (5, True),
    InteractionType.STRATEGIC_DISCUSSION: (10, True),
    InteractionType.PROMISE_MADE: (15, False),
    InteractionType.PROMISE_KEPT: (25, False),
    InteractionType.PROMISE_BROKEN: (-40, False),
    InteractionType.NOMINATED: (-25, False),
    InteractionType.SAVED_WITH_VETO: (40, False),
    InteractionType.VOTED_AGAINST: (-20, False),
    InteractionType.VOTED_FOR: (15, True),
    InteractionType.ALLIANCE_FORMED: (30, False),
    InteractionType.ALLIANCE_BETRAYED: (-50, False),
    InteractionType.RUMOR_SPREAD: (-15, True),
    InteractionType.DEFENDED: (20, True),
    InteractionType.ATTACKED: (-20, True),
    InteractionType.HELPED: (15, True),
    InteractionType.IGNORED: (-5, True),
    InteractionType.DEAL_PROPOSED: (8, True),
    InteractionType.DEAL_ACCEPTED: (18, False),
    InteractionType.DEAL_FULFILLED: (35, False),
    InteractionType.DEAL_BROKEN: (-50, False),
}

BETRAYAL_TYPES = frozenset(
    {InteractionType.PROMISE_BROKEN, InteractionType.ALLIANCE_BETRAYED}
)


@dataclass
class TrackedInteraction:
    id: str
    week: int
    type: InteractionType
    from_id: str
    to_id: str
    impact: float
    description: str
    decays_at: Optional[int] = None  # None = never decays

    @property
    def sentiment(self) -> str:
        if self.impact > 0:
            return "positive"
        if self.impact < 0:
            return "negative"
        return "neutral"


@dataclass
class InteractionSummary:
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0
    total_impact: float = 0.0
    recent_impact: float = 0.0
    most_significant: Optional[TrackedInteraction] = None


class InteractionTracker:
    """Records who did what to whom, and turns it into per-pair trust.

    Satisfies the InteractionProvider protocol used by compute_trust.
    """

    def __init__(
        self, retention_weeks: int = 3, decay_rate: float = 0.1, current_week: int = 1
    ) -> None:
        self._interactions: List[TrackedInteraction] = []
        self._retention_weeks = retention_weeks
        self._decay_rate = decay_rate
        self._counter = itertools.count(1)
        self.current_week = current_week

    def track(
        self,
        from_id: str,
        to_id: str,
        interaction_type: InteractionType,
        description: str = "",
        impact: Optional[float] = None,
    ) -> TrackedInteraction:
        default_impact, decays = INTERACTION_DEFAULTS[interaction_type]
        interaction = TrackedInteraction(
            id=f"interaction-{next(self._counter)}",
            week=self.current_week,
            type=interaction_type,
            from_id=from_id,
            to_id=to_id,
            impact=default_impact if impact is None else impact,
            description=description,
            decays_at=self.current_week + self._retention_weeks if decays else None,
        )
        self._interactions.append(interaction)
        logger.debug(
            f"Tracked interaction: {interaction_type.value} {from_id} -> {to_id} "
            f"(impact={interaction.impact})"
        )
        return interaction

    def interactions_between(self, a: str, b: str) -> List[TrackedInteraction]:
        return [
            i
            for i in self._interactions
            if (i.from_id == a and i.to_id == b) or (i.from_id == b and i.to_id == a)
        ]

    def interactions_for(self, houseguest_id: str) -> List[TrackedInteraction]:
        return [
            i
            for i in self._interactions
            if houseguest_id in (i.from_id, i.to_id)
        ]

    def effective_impact(self, interaction: TrackedInteraction) -> float:
        if interaction.decays_at is None or self.current_week < interaction.decays_at:
            return interaction.impact
        weeks_past = self.current_week - interaction.decays_at
        return interaction.impact * (1 - self._decay_rate) ** weeks_past

    def summary(self, from_id: str, to_id: str) -> InteractionSummary:
        """What to_id has done to from_id, seen from from_id's side."""
        result = InteractionSummary()
        best_abs = -1.0
        for interaction in self.interactions_between(from_id, to_id):
            if interaction.to_id != from_id:
                continue
            effect = self.effective_impact(interaction)
            result.total_impact += effect
            if interaction.sentiment == "positive":
                result.positive_count += 1
            elif interaction.sentiment == "negative":
                result.negative_count += 1
            else:
                result.neutral_count += 1
            if self.current_week - interaction.week <= RECENT_WEEKS:
                result.recent_impact += effect
            if abs(effect) > best_abs:
                best_abs = abs(effect)
                result.most_significant = interaction
        return result

    def get_trust_score(self, from_id: str, to_id: str) -> float:
        """0~100 trust from_id places in to_id."""
        s = self.summary(from_id, to_id)
        score = 50.0
        score += max(-40.0, min(40.0, s.total_impact / 2))
        if s.recent_impact > 0:
            score += min(10.0, s.recent_impact / 3)
        elif s.recent_impact < 0:
            score += max(-15.0, s.recent_impact / 2)

        betrayals = sum(
            1
            for i in self._interactions
            if i.to_id == from_id and i.from_id == to_id and i.type in BETRAYAL_TYPES
        )
        score -= BETRAYAL_PENALTY * betrayals
        return max(0.0, min(100.0, score))

    def clear(self) -> None:
        self._interactions.clear()

    def __len__(self) -> int:
        return len(self._interactions)
