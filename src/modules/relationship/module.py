"""RelationshipModule - GameModule wrapper around RelationshipService

Applies the relationship side of every deal outcome and runs the weekly
decay when a new week starts.
EventBus subscriptions: deal_accepted, deal_declined, deal_fulfilled, deal_broken.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from src.core.alliance.models import Alliance
from src.core.deal.models import DealType
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.core.logging import get_logger
from src.core.relationship.models import Relationship
from src.db.mappers import deal_from_dict
from src.modules.base import GameContext, GameModule
from src.services.deal_service import delta_from_dict
from src.services.relationship_service import RelationshipService

logger = get_logger(__name__)

DEAL_OUTCOME_EVENTS = (
    EventTypes.DEAL_ACCEPTED,
    EventTypes.DEAL_DECLINED,
    EventTypes.DEAL_FULFILLED,
    EventTypes.DEAL_BROKEN,
)


class RelationshipModule(GameModule):
    """Relationship system module

    Owns:
    - relationship/alliance query API for other layers
    - deal consequences: score deltas, alliance stability, alliance invites
    - weekly decay on entering the HoH phase
    """

    def __init__(self, db_session: Session, event_bus: EventBus) -> None:
        super().__init__()
        self._db = db_session
        self._bus = event_bus
        self._service: Optional[RelationshipService] = None

    @property
    def name(self) -> str:
        return "relationship"

    def on_enable(self) -> None:
        self._service = RelationshipService(self._db, self._bus)
        for event_type in DEAL_OUTCOME_EVENTS:
            self._bus.subscribe(event_type, self._handle_deal_outcome)
        logger.info("relationship module enabled")

    def on_disable(self) -> None:
        for event_type in DEAL_OUTCOME_EVENTS:
            self._bus.unsubscribe(event_type, self._handle_deal_outcome)
        self._service = None
        logger.info("relationship module disabled")

    def on_turn(self, context: GameContext) -> None:
        pass

    def on_phase_enter(self, phase: GamePhase, context: GameContext) -> None:
        if self._service is None or phase != GamePhase.HOH:
            return
        self._service.apply_weekly_decay(context.week)

    # ── EventBus handlers ──────────────────────────────────────

    def _handle_deal_outcome(self, event: GameEvent) -> None:
        if self._service is None:
            logger.warning(f"relationship: {event.event_type} received before enable")
            return

        week = event.data.get("week", 0)
        deltas = [delta_from_dict(d) for d in event.data.get("deltas", [])]
        self._service.apply_deltas(deltas, week)

        deal = deal_from_dict(event.data["deal"])
        change = event.data.get("alliance_stability_change", 0.0)
        if change:
            adjusted = self._service.adjust_shared_alliances(
                deal.proposer_id, deal.recipient_id, change
            )
            self._break_collapsed(adjusted, event.data.get("actor_id"))

        if event.event_type == EventTypes.DEAL_ACCEPTED and deal.type == DealType.ALLIANCE_INVITE:
            self._join_alliance(deal.proposer_id, deal.recipient_id, deal.context.alliance_id, week)

    def _join_alliance(
        self, proposer_id: str, recipient_id: str, alliance_id: Optional[str], week: int
    ) -> Alliance:
        """Accepted invite: join the named alliance, or found a new pair alliance."""
        if alliance_id is not None:
            existing = self._service.get_alliance(alliance_id)
            if existing is not None and existing.is_active:
                return self._service.add_member(alliance_id, recipient_id)
        return self._service.create_alliance(
            name=f"{proposer_id} & {recipient_id}",
            member_ids=[proposer_id, recipient_id],
            founder_id=proposer_id,
            week=week,
        )

    def _break_collapsed(self, alliances: List[Alliance], actor_id: Optional[str]) -> None:
        for alliance in alliances:
            if alliance.stability <= 0:
                self._service.break_alliance(alliance.id, [actor_id] if actor_id else [])

    # ── public query API ───────────────────────────────────────

    def get_relationship(self, a: str, b: str) -> Optional[Relationship]:
        if self._service is None:
            return None
        return self._service.get(a, b)

    def get_alliances(self, active_only: bool = True) -> List[Alliance]:
        if self._service is None:
            return []
        return self._service.get_alliances(active_only=active_only)
