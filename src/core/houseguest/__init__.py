"""Houseguest core package - public API"""

from src.core.houseguest.models import (
    CompetitionWins,
    Houseguest,
    HouseguestStats,
    HouseguestStatus,
    PersonalityTrait,
    trait_value,
)

__all__ = [
    "CompetitionWins",
    "Houseguest",
    "HouseguestStats",
    "HouseguestStatus",
    "PersonalityTrait",
    "trait_value",
]
