"""GameState Service - houseguest roster, season clock and snapshots

Builds the read-only GameSnapshot the decision core works on. Owns the
houseguest and game_state tables; reads relationships, deals and alliances
directly from their tables without going through their services.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase, GameSnapshot, InteractionProvider
from src.core.houseguest.models import Houseguest, HouseguestStatus
from src.core.logging import get_logger
from src.core.relationship.store import InMemoryRelationshipStore
from src.db.mappers import (
    alliance_from_orm,
    deal_from_orm,
    houseguest_from_orm,
    houseguest_to_orm,
    relationship_event_from_orm,
)
from src.db.models import (
    AllianceModel,
    DealModel,
    GameStateModel,
    HouseguestModel,
    RelationshipModel,
)

logger = get_logger(__name__)

DEFAULT_GAME_ID = "default"


class GameStateService:
    """Roster CRUD, phase/week tracking and snapshot building"""

    def __init__(
        self, db_session: Session, event_bus: EventBus, game_id: str = DEFAULT_GAME_ID
    ) -> None:
        self._db = db_session
        self._bus = event_bus
        self._game_id = game_id

    # ── season clock ─────────────────────────────────────────

    def get_week(self) -> int:
        return self._get_state_row().week

    def get_phase(self) -> GamePhase:
        return GamePhase(self._get_state_row().phase)

    def set_phase(self, phase: GamePhase) -> GamePhase:
        """Move to a new phase. Emits phase_changed when it actually changes."""
        row = self._get_state_row()
        old_phase = row.phase
        if old_phase == phase.value:
            return phase
        row.phase = phase.value
        self._db.commit()
        logger.info(f"Phase changed: {old_phase} -> {phase.value} (week {row.week})")
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.PHASE_CHANGED,
                data={
                    "old_phase": old_phase,
                    "new_phase": phase.value,
                    "week": row.week,
                    "dedup_key": f"{row.week}:{phase.value}",
                },
                source="game_state_service",
            )
        )
        return phase

    def advance_week(self) -> int:
        """Start the next week: roles reset, phase goes back to HoH."""
        row = self._get_state_row()
        row.week += 1
        for hg in self._db.query(HouseguestModel).all():
            hg.is_hoh = False
            hg.is_nominated = False
            hg.is_pov_holder = False
        self._db.commit()
        logger.info(f"Week {row.week} started")
        self.set_phase(GamePhase.HOH)
        return row.week

    # ── roster ───────────────────────────────────────────────

    def register_houseguests(self, houseguests: List[Houseguest]) -> List[Houseguest]:
        players = [h for h in houseguests if h.is_player]
        if len(players) > 1:
            raise ValueError("Only one houseguest can be the player")
        ids = [h.id for h in houseguests]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate houseguest ids: {ids}")
        for hg in houseguests:
            if self._db.get(HouseguestModel, hg.id) is not None:
                raise ValueError(f"Houseguest already registered: {hg.id}")
        if players and any(
            r.is_player for r in self._db.query(HouseguestModel).filter(HouseguestModel.is_player)
        ):
            raise ValueError("Only one houseguest can be the player")
        for hg in houseguests:
            self._db.add(houseguest_to_orm(hg))
        self._get_state_row()
        self._db.commit()
        logger.info(f"Registered {len(houseguests)} houseguests")
        return houseguests

    def get_houseguest(self, houseguest_id: str) -> Optional[Houseguest]:
        row = self._db.get(HouseguestModel, houseguest_id)
        return houseguest_from_orm(row) if row is not None else None

    def require_houseguest(self, houseguest_id: str) -> Houseguest:
        hg = self.get_houseguest(houseguest_id)
        if hg is None:
            raise ValueError(f"Houseguest not found: {houseguest_id}")
        return hg

    def list_houseguests(self, active_only: bool = False) -> List[Houseguest]:
        query = self._db.query(HouseguestModel)
        if active_only:
            query = query.filter(HouseguestModel.status == HouseguestStatus.ACTIVE.value)
        return [houseguest_from_orm(r) for r in query.order_by(HouseguestModel.houseguest_id)]

    def set_hoh(self, houseguest_id: str) -> None:
        self._require_row(houseguest_id)
        for row in self._db.query(HouseguestModel).all():
            row.is_hoh = row.houseguest_id == houseguest_id
        self._db.commit()

    def set_pov_holder(self, houseguest_id: str) -> None:
        self._require_row(houseguest_id)
        for row in self._db.query(HouseguestModel).all():
            row.is_pov_holder = row.houseguest_id == houseguest_id
        self._db.commit()

    def set_nominees(self, nominee_ids: List[str]) -> None:
        for hid in nominee_ids:
            self._require_row(hid)
        for row in self._db.query(HouseguestModel).all():
            row.is_nominated = row.houseguest_id in nominee_ids
        self._db.commit()
        logger.info(f"Nominees set: {nominee_ids}")

    def set_status(self, houseguest_id: str, status: HouseguestStatus) -> None:
        row = self._require_row(houseguest_id)
        row.status = status.value
        if status != HouseguestStatus.ACTIVE:
            row.is_hoh = False
            row.is_nominated = False
            row.is_pov_holder = False
        self._db.commit()
        logger.info(f"Houseguest {houseguest_id} is now {status.value}")

    # ── snapshot ─────────────────────────────────────────────

    def build_snapshot(
        self, interactions: Optional[InteractionProvider] = None
    ) -> GameSnapshot:
        """Everything the decision core needs, loaded in one pass."""
        state = self._get_state_row()
        store = InMemoryRelationshipStore()
        for row in self._db.query(RelationshipModel).all():
            rel = store.get_or_create(row.guest_a, row.guest_b)
            rel.score = row.score
            rel.notes = list(row.notes or [])
            rel.events = [relationship_event_from_orm(e) for e in row.events]

        return GameSnapshot(
            houseguests=self.list_houseguests(),
            relationships=store,
            deals=[deal_from_orm(r) for r in self._db.query(DealModel).all()],
            alliances=[alliance_from_orm(r) for r in self._db.query(AllianceModel).all()],
            week=state.week,
            phase=GamePhase(state.phase),
            interactions=interactions,
        )

    # ── internal helpers ─────────────────────────────────────

    def _get_state_row(self) -> GameStateModel:
        row = self._db.get(GameStateModel, self._game_id)
        if row is None:
            row = GameStateModel(
                game_id=self._game_id, week=1, phase=GamePhase.SETUP.value
            )
            self._db.add(row)
            self._db.flush()
        return row

    def _require_row(self, houseguest_id: str) -> HouseguestModel:
        row = self._db.get(HouseguestModel, houseguest_id)
        if row is None:
            raise ValueError(f"Houseguest not found: {houseguest_id}")
        return row

