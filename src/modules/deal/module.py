"""DealModule - GameModule wrapper around DealService

Turns ceremony events into deal resolutions, expires deals at the start
of each week and asks the AI houseguests for proposals in the social phase.
EventBus subscriptions: nominations_made, nominee_replaced, vote_cast,
veto_decided, finalist_selected, relationship_milestone.
"""

from __future__ import annotations

import random
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from src.core.deal.lifecycle import DealAction
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.core.logging import get_logger
from src.modules.base import Action, GameContext, GameModule
from src.services.deal_service import DealService
from src.services.game_state_service import GameStateService

logger = get_logger(__name__)


class DealModule(GameModule):
    """Deal system module

    Owns:
    - resolving active deals against nominations, votes, veto and final-two picks
    - expiry when a new week starts
    - AI proposals on entering the social phase, milestone proposals
    - obligation warnings for the player each phase

    Depends on "relationship": outcome deltas are only applied there.
    """

    def __init__(
        self,
        db_session: Session,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__()
        self._db = db_session
        self._bus = event_bus
        self._rng = rng
        self._service: Optional[DealService] = None
        self._state: Optional[GameStateService] = None
        # week -> {voter_id: evict_id}
        self._votes: Dict[int, Dict[str, str]] = defaultdict(dict)

    @property
    def name(self) -> str:
        return "deals"

    @property
    def dependencies(self) -> List[str]:
        return ["relationship"]

    @property
    def service(self) -> Optional[DealService]:
        return self._service

    def on_enable(self) -> None:
        self._service = DealService(self._db, self._bus, rng=self._rng)
        self._state = GameStateService(self._db, self._bus)
        self._bus.subscribe(EventTypes.NOMINATIONS_MADE, self._handle_nominations)
        self._bus.subscribe(EventTypes.NOMINEE_REPLACED, self._handle_nominations)
        self._bus.subscribe(EventTypes.VOTE_CAST, self._handle_vote_cast)
        self._bus.subscribe(EventTypes.VETO_DECIDED, self._handle_veto_decided)
        self._bus.subscribe(EventTypes.FINALIST_SELECTED, self._handle_finalist_selected)
        self._bus.subscribe(EventTypes.RELATIONSHIP_MILESTONE, self._handle_milestone)
        logger.info("deals module enabled")

    def on_disable(self) -> None:
        self._bus.unsubscribe(EventTypes.NOMINATIONS_MADE, self._handle_nominations)
        self._bus.unsubscribe(EventTypes.NOMINEE_REPLACED, self._handle_nominations)
        self._bus.unsubscribe(EventTypes.VOTE_CAST, self._handle_vote_cast)
        self._bus.unsubscribe(EventTypes.VETO_DECIDED, self._handle_veto_decided)
        self._bus.unsubscribe(EventTypes.FINALIST_SELECTED, self._handle_finalist_selected)
        self._bus.unsubscribe(EventTypes.RELATIONSHIP_MILESTONE, self._handle_milestone)
        self._service = None
        self._state = None
        self._votes.clear()
        logger.info("deals module disabled")

    def on_turn(self, context: GameContext) -> None:
        """Surface the player's obligations for the current phase."""
        if self._service is None or context.player_id is None:
            return
        snapshot = self._state.build_snapshot()
        self._service.get_obligations(snapshot, context.player_id, context.phase)

    def on_phase_enter(self, phase: GamePhase, context: GameContext) -> None:
        if self._service is None:
            return
        if phase == GamePhase.HOH:
            self._service.expire_deals(context.week)
            self._service.expire_proposals(context.week)
            for week in [w for w in self._votes if w < context.week]:
                del self._votes[week]
        elif phase == GamePhase.SOCIAL_INTERACTION:
            self._service.generate_proposals(self._state.build_snapshot())

    def get_available_actions(self, context: GameContext) -> List[Action]:
        if self._service is None or context.player_id is None:
            return []
        return [
            Action(
                name="respond_proposal",
                display_name=f"Answer {p.from_npc_name}: {p.deal.title}",
                module_name=self.name,
                description=p.reasoning,
                params={"proposal_id": p.id},
            )
            for p in self._service.get_pending_proposals(context.player_id)
        ]

    # ── EventBus handlers ──────────────────────────────────────

    def _handle_nominations(self, event: GameEvent) -> None:
        self._process(DealAction.NOMINATE, event)

    def _handle_vote_cast(self, event: GameEvent) -> None:
        week = event.data.get("week", 0)
        self._votes[week][event.data["voter_id"]] = event.data["evict_id"]
        if self._service is None:
            return
        snapshot = self._state.build_snapshot()
        self._service.process_action(
            snapshot, DealAction.CAST_VOTE, {"votes": dict(self._votes[week])}
        )

    def _handle_veto_decided(self, event: GameEvent) -> None:
        self._process(DealAction.VETO_DECISION, event)

    def _handle_finalist_selected(self, event: GameEvent) -> None:
        self._process(DealAction.FINAL_SELECTION, event)

    def _handle_milestone(self, event: GameEvent) -> None:
        """An AI houseguest who just grew closer to the player makes an offer."""
        if self._service is None:
            return
        snapshot = self._state.build_snapshot()
        player = snapshot.player()
        pair = (event.data["guest_a"], event.data["guest_b"])
        if player is None or player.id not in pair:
            return
        npc_id = pair[1] if pair[0] == player.id else pair[0]
        self._service.create_milestone_proposal(
            snapshot,
            npc_id,
            player.id,
            event.data["old_score"],
            event.data["new_score"],
        )

    def _process(self, action: DealAction, event: GameEvent) -> None:
        if self._service is None:
            logger.warning(f"deals: {event.event_type} received before enable")
            return
        snapshot = self._state.build_snapshot()
        self._service.process_action(snapshot, action, event.data)
