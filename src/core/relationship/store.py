"""Relationship store interface

Components receive a store instead of reaching into shared maps.
The in-memory store backs core tests and offline simulations;
RelationshipService implements the same protocol over the database.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from src.core.relationship.calculations import apply_change, clamp_score
from src.core.relationship.models import (
    Relationship,
    RelationshipDelta,
    RelationshipEvent,
    pair_key,
)


class RelationshipStore(Protocol):
    """Read/write access to symmetric relationship scores."""

    def get_relationship(self, a: str, b: str) -> float: ...

    def set_relationship(self, a: str, b: str, score: float) -> None: ...

    def get_events(self, a: str, b: str) -> List[RelationshipEvent]: ...


class InMemoryRelationshipStore:
    """Dict-backed RelationshipStore"""

    def __init__(self, initial: Optional[Dict[Tuple[str, str], float]] = None) -> None:
        self._relationships: Dict[Tuple[str, str], Relationship] = {}
        for (a, b), score in (initial or {}).items():
            self.set_relationship(a, b, score)

    def get(self, a: str, b: str) -> Optional[Relationship]:
        return self._relationships.get(pair_key(a, b))

    def get_or_create(self, a: str, b: str) -> Relationship:
        key = pair_key(a, b)
        rel = self._relationships.get(key)
        if rel is None:
            rel = Relationship(guest_a=key[0], guest_b=key[1])
            self._relationships[key] = rel
        return rel

    def get_relationship(self, a: str, b: str) -> float:
        rel = self.get(a, b)
        return rel.score if rel is not None else 0.0

    def set_relationship(self, a: str, b: str, score: float) -> None:
        self.get_or_create(a, b).score = clamp_score(score)

    def get_events(self, a: str, b: str) -> List[RelationshipEvent]:
        rel = self.get(a, b)
        return list(rel.events) if rel is not None else []

    def add_event(self, a: str, b: str, event: RelationshipEvent) -> None:
        rel = self.get_or_create(a, b)
        rel.events.append(event)
        rel.notes.append(event.description)
        rel.score = apply_change(rel.score, event.impact_score)

    def relationships(self) -> Iterable[Relationship]:
        return self._relationships.values()


def apply_delta(
    store: InMemoryRelationshipStore, delta: RelationshipDelta, week: int = 0
) -> float:
    """Apply one delta as an event. Returns the new score."""
    store.add_event(
        delta.guest_a,
        delta.guest_b,
        RelationshipEvent(
            event_type=delta.event_type,
            description=delta.description,
            impact_score=delta.change,
            decayable=delta.decayable,
            week=week,
        ),
    )
    return store.get_relationship(delta.guest_a, delta.guest_b)
