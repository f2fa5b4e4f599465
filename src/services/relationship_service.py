"""Relationship Service - connects the relationship/alliance core to the DB

Service -> Core and Service -> DB are allowed.
Service -> Service is not; other services reach this one through the EventBus.

Implements the RelationshipStore protocol, so core functions can read
scores straight from the database.
"""

import uuid
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.config import settings
from src.core.alliance.models import Alliance, AllianceStatus
from src.core.alliance.stability import adjust_stability, shared_active_alliances
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.relationship.calculations import (
    apply_change,
    clamp_score,
    decay_event_impact,
    decay_score,
)
from src.core.relationship.models import (
    Relationship,
    RelationshipDelta,
    RelationshipEvent,
    pair_key,
)
from src.core.relationship.tiers import (
    check_milestone_crossing,
    get_milestone_info,
)
from src.db.mappers import (
    alliance_from_orm,
    relationship_event_from_orm,
    relationship_from_orm,
)
from src.db.models import AllianceModel, RelationshipEventModel, RelationshipModel

logger = get_logger(__name__)


class RelationshipService:
    """Relationship scores, event history, milestones and alliances"""

    def __init__(self, db_session: Session, event_bus: EventBus) -> None:
        self._db = db_session
        self._bus = event_bus

    # ── RelationshipStore ────────────────────────────────────

    def get_relationship(self, a: str, b: str) -> float:
        row = self._get_relationship_row(a, b)
        return row.score if row is not None else 0.0

    def set_relationship(self, a: str, b: str, score: float) -> None:
        row = self._get_or_create_row(a, b)
        row.score = clamp_score(score)
        self._db.commit()

    def get_events(self, a: str, b: str) -> List[RelationshipEvent]:
        row = self._get_relationship_row(a, b)
        if row is None:
            return []
        return [relationship_event_from_orm(e) for e in row.events]

    # ── lookups ──────────────────────────────────────────────

    def get(self, a: str, b: str) -> Optional[Relationship]:
        row = self._get_relationship_row(a, b)
        if row is None:
            return None
        return relationship_from_orm(row)

    def get_relationships_for(self, houseguest_id: str) -> List[Relationship]:
        rows = (
            self._db.query(RelationshipModel)
            .filter(
                or_(
                    RelationshipModel.guest_a == houseguest_id,
                    RelationshipModel.guest_b == houseguest_id,
                )
            )
            .all()
        )
        return [relationship_from_orm(r) for r in rows]

    def all_relationships(self) -> List[Relationship]:
        return [relationship_from_orm(r) for r in self._db.query(RelationshipModel).all()]

    # ── deltas ───────────────────────────────────────────────

    def apply_delta(self, delta: RelationshipDelta, week: int = 0) -> float:
        """Record the delta as an event, move the score, emit change events.

        Returns the new score.
        """
        row = self._get_or_create_row(delta.guest_a, delta.guest_b)
        old_score = row.score
        new_score = apply_change(old_score, delta.change)

        event_row = RelationshipEventModel(
            event_type=delta.event_type,
            description=delta.description,
            impact_score=delta.change,
            decayable=delta.decayable,
            week=week,
        )
        row.events.append(event_row)
        if delta.description:
            row.notes = [*(row.notes or []), delta.description]
        row.score = new_score
        self._db.commit()

        logger.info(
            f"Relationship {row.guest_a}<->{row.guest_b}: "
            f"{old_score:.1f} -> {new_score:.1f} ({delta.event_type})"
        )

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.RELATIONSHIP_CHANGED,
                data={
                    "guest_a": row.guest_a,
                    "guest_b": row.guest_b,
                    "old_score": old_score,
                    "new_score": new_score,
                    "change": delta.change,
                    "event_type": delta.event_type,
                    "dedup_key": f"{row.guest_a}:{row.guest_b}:{event_row.id}",
                },
                source="relationship_service",
            )
        )

        threshold = check_milestone_crossing(old_score, new_score)
        if threshold is not None:
            info = get_milestone_info(threshold)
            logger.info(
                f"Milestone {threshold} reached: {row.guest_a}<->{row.guest_b}"
            )
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.RELATIONSHIP_MILESTONE,
                    data={
                        "guest_a": row.guest_a,
                        "guest_b": row.guest_b,
                        "threshold": threshold,
                        "old_score": old_score,
                        "new_score": new_score,
                        "from_tier": info.from_tier.value,
                        "to_tier": info.to_tier.value,
                        "message": info.message,
                        "unlocked_deals": list(info.unlocked_deals),
                        "dedup_key": (
                            f"{row.guest_a}:{row.guest_b}:{threshold}:{event_row.id}"
                        ),
                    },
                    source="relationship_service",
                )
            )
        return new_score

    def apply_deltas(self, deltas: List[RelationshipDelta], week: int = 0) -> List[float]:
        return [self.apply_delta(d, week) for d in deltas]

    def seed_relationship(self, a: str, b: str, score: float) -> Relationship:
        """Starting score for a pair, no event recorded."""
        row = self._get_or_create_row(a, b)
        row.score = clamp_score(score)
        self._db.commit()
        return relationship_from_orm(row)

    # ── weekly decay ─────────────────────────────────────────

    def apply_weekly_decay(self, week: int) -> int:
        """Fade quiet relationships and old decayable events.

        Only pairs with recorded history decay; a pair that interacted
        this week is untouched. Returns the number of pairs whose score moved.
        """
        rate = settings.RELATIONSHIP_DECAY_RATE
        if rate <= 0:
            return 0
        moved = 0
        for row in self._db.query(RelationshipModel).all():
            if not row.events:
                continue
            last_week = max(e.week for e in row.events)
            if last_week >= week:
                continue
            new_score = decay_score(row.score, week - last_week, rate)
            if new_score != row.score:
                logger.debug(
                    f"Decay {row.guest_a}<->{row.guest_b}: {row.score:.1f} -> {new_score:.1f}"
                )
                row.score = new_score
                moved += 1
            for event in row.events:
                if event.decayable:
                    event.impact_score = decay_event_impact(
                        event.impact_score,
                        week - event.week,
                        settings.MEMORY_RETENTION_WEEKS,
                        rate,
                    )
        self._db.commit()
        if moved:
            logger.info(f"Relationship decay at week {week}: {moved} pairs drifted")
        return moved

    # ── alliances ────────────────────────────────────────────

    def get_alliance(self, alliance_id: str) -> Optional[Alliance]:
        row = self._db.get(AllianceModel, alliance_id)
        return alliance_from_orm(row) if row is not None else None

    def get_alliances(self, active_only: bool = False) -> List[Alliance]:
        query = self._db.query(AllianceModel)
        if active_only:
            query = query.filter(AllianceModel.status == AllianceStatus.ACTIVE.value)
        return [alliance_from_orm(r) for r in query.all()]

    def create_alliance(
        self,
        name: str,
        member_ids: List[str],
        founder_id: str,
        week: int = 1,
        is_public: bool = False,
    ) -> Alliance:
        if founder_id not in member_ids:
            raise ValueError(f"Founder {founder_id} is not a member of {name}")
        if len(set(member_ids)) < 2:
            raise ValueError("An alliance needs at least two members")
        row = AllianceModel(
            alliance_id=str(uuid.uuid4()),
            name=name,
            member_ids=list(dict.fromkeys(member_ids)),
            founder_id=founder_id,
            created_week=week,
            status=AllianceStatus.ACTIVE.value,
            stability=80.0,
            is_public=is_public,
            last_meeting_week=week,
            dissolved_by=[],
        )
        self._db.add(row)
        self._db.commit()
        logger.info(f"Alliance created: {name} ({row.alliance_id}) {row.member_ids}")
        return alliance_from_orm(row)

    def add_member(self, alliance_id: str, houseguest_id: str) -> Alliance:
        row = self._db.get(AllianceModel, alliance_id)
        if row is None:
            raise ValueError(f"Alliance not found: {alliance_id}")
        if row.status != AllianceStatus.ACTIVE.value:
            raise ValueError(f"Alliance {row.name} is no longer active")
        if houseguest_id not in row.member_ids:
            row.member_ids = [*row.member_ids, houseguest_id]
            self._db.commit()
            logger.info(f"{houseguest_id} joined alliance {row.name}")
        return alliance_from_orm(row)

    def adjust_alliance_stability(self, alliance_id: str, change: float) -> Alliance:
        row = self._db.get(AllianceModel, alliance_id)
        if row is None:
            raise ValueError(f"Alliance not found: {alliance_id}")
        row.stability = adjust_stability(row.stability, change)
        self._db.commit()
        return alliance_from_orm(row)

    def adjust_shared_alliances(self, a: str, b: str, change: float) -> List[Alliance]:
        """Apply a stability change to every active alliance containing both."""
        shared = shared_active_alliances(self.get_alliances(active_only=True), a, b)
        return [self.adjust_alliance_stability(al.id, change) for al in shared]

    def break_alliance(self, alliance_id: str, blamed_ids: List[str]) -> Alliance:
        row = self._db.get(AllianceModel, alliance_id)
        if row is None:
            raise ValueError(f"Alliance not found: {alliance_id}")
        row.status = AllianceStatus.BROKEN.value
        row.dissolved_by = list(blamed_ids)
        self._db.commit()
        logger.info(f"Alliance broken: {row.name} (blamed: {blamed_ids})")
        return alliance_from_orm(row)

    # ── internal helpers ─────────────────────────────────────

    def _get_relationship_row(self, a: str, b: str) -> Optional[RelationshipModel]:
        low, high = pair_key(a, b)
        return (
            self._db.query(RelationshipModel)
            .filter(RelationshipModel.guest_a == low, RelationshipModel.guest_b == high)
            .first()
        )

    def _get_or_create_row(self, a: str, b: str) -> RelationshipModel:
        if a == b:
            raise ValueError(f"A houseguest has no relationship with themselves: {a}")
        row = self._get_relationship_row(a, b)
        if row is None:
            low, high = pair_key(a, b)
            row = RelationshipModel(guest_a=low, guest_b=high, score=0.0, notes=[])
            self._db.add(row)
            self._db.flush()
        return row
