"""Relationship score arithmetic

All pure functions.
"""

RELATIONSHIP_MIN = -100.0
RELATIONSHIP_MAX = 100.0


def clamp_score(value: float) -> float:
    """-100 ~ +100 clamp."""
    return max(RELATIONSHIP_MIN, min(RELATIONSHIP_MAX, value))


def clamp_unit(value: float) -> float:
    """0 ~ 100 clamp, used by trust factors and alliance stability."""
    return max(0.0, min(100.0, value))


def apply_change(current: float, change: float) -> float:
    """Add a change and keep the result in range."""
    return clamp_score(current + change)


def event_trust_step(event_type: str, impact_score: float) -> float:
    """Trust contribution of one relationship event.

    kept promises / fulfilled deals +10, betrayals / broken deals -15,
    anything else half its impact, capped at +-5.
    """
    if event_type in ("kept_promise", "deal_fulfilled"):
        return 10.0
    if event_type in ("betrayal", "deal_broken"):
        return -15.0
    if impact_score > 0:
        return min(5.0, impact_score / 2)
    if impact_score < 0:
        return max(-5.0, impact_score / 2)
    return 0.0


def decay_score(score: float, weeks_without_interaction: int, rate: float) -> float:
    """Drift toward neutral for a pair that has gone quiet.

    Loses ``rate`` of the score per silent week and never overshoots 0.
    """
    if rate <= 0 or weeks_without_interaction <= 0:
        return score
    return score * max(0.0, 1.0 - rate * weeks_without_interaction)


def decay_event_impact(
    impact_score: float, age_weeks: int, retention_weeks: int, rate: float
) -> float:
    """One week of fading for a decayable event older than the retention window."""
    if rate <= 0 or age_weeks <= retention_weeks:
        return impact_score
    return impact_score * (1.0 - rate)
