"""Decision Service - AI nominations, votes, veto, replacement and finalist

Runs the decision scorer over a GameSnapshot and writes the resulting
role flags. Deal consequences are left to whoever listens for the
decision events.
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from src.config import settings
from src.core.decision.choices import (
    VetoDecision,
    choose_eviction_vote,
    choose_finalist,
    choose_nominees,
    choose_replacement_nominee,
    decide_veto,
    validate_replacement,
    validate_veto_save,
)
from src.core.decision.scoring import TraitWeights
from src.core.errors import InvalidSelectionError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest
from src.core.logging import get_logger
from src.db.models import HouseguestModel

logger = get_logger(__name__)


def weights_from_settings() -> TraitWeights:
    return TraitWeights(
        threat=settings.NPC_THREAT_WEIGHT,
        loyalty=settings.NPC_LOYALTY_WEIGHT,
        relationship=settings.NPC_RELATIONSHIP_WEIGHT,
        promise=settings.NPC_PROMISE_WEIGHT,
        strategic=settings.NPC_PERSONALITY_WEIGHT,
    )


class DecisionService:
    """AI houseguest decisions for each ceremony"""

    def __init__(self, db_session: Session, event_bus: EventBus) -> None:
        self._db = db_session
        self._bus = event_bus

    # ── nominations ──────────────────────────────────────────

    def ai_nominations(self, snapshot: GameSnapshot, count: int = 2) -> List[str]:
        hoh = self._require_hoh(snapshot)
        nominee_ids = choose_nominees(hoh, snapshot, count, base_weights=weights_from_settings())
        self.apply_nominations(snapshot, nominee_ids)
        return nominee_ids

    def apply_nominations(self, snapshot: GameSnapshot, nominee_ids: Sequence[str]) -> None:
        hoh = self._require_hoh(snapshot)
        if len(set(nominee_ids)) != len(nominee_ids):
            raise ValueError(f"Duplicate nominees: {list(nominee_ids)}")
        for hid in nominee_ids:
            nominee = snapshot.get_houseguest(hid)
            if nominee is None or not nominee.is_active:
                raise InvalidSelectionError(hid, "not an active houseguest")
            if hid == hoh.id:
                raise InvalidSelectionError(hid, "the HoH cannot be nominated")

        for row in self._db.query(HouseguestModel).all():
            row.is_nominated = row.houseguest_id in nominee_ids
        self._db.commit()
        logger.info(f"{hoh.name} nominated {list(nominee_ids)}")

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.NOMINATIONS_MADE,
                data={
                    "nominator_id": hoh.id,
                    "nominee_ids": list(nominee_ids),
                    "week": snapshot.week,
                    "dedup_key": f"{snapshot.week}:{hoh.id}",
                },
                source="decision_service",
            )
        )

    # ── eviction votes ───────────────────────────────────────

    def ai_eviction_votes(
        self, snapshot: GameSnapshot, voter_ids: Optional[Sequence[str]] = None
    ) -> Dict[str, str]:
        """Votes of every eligible AI voter: {voter_id: evict_id}."""
        nominees = snapshot.nominees()
        if not nominees:
            raise ValueError("No nominees to vote on")
        voters = self._eligible_voters(snapshot, voter_ids)
        weights = weights_from_settings()

        votes: Dict[str, str] = {}
        for voter in voters:
            decision = choose_eviction_vote(voter, nominees, snapshot, base_weights=weights)
            votes[voter.id] = decision.evict_id
            self._emit_vote(snapshot, voter.id, decision.evict_id)
        return votes

    def record_vote(self, snapshot: GameSnapshot, voter_id: str, evict_id: str) -> None:
        """A vote cast by the player (or any caller outside the scorer)."""
        voter = snapshot.get_houseguest(voter_id)
        if voter is None or not voter.is_active:
            raise InvalidSelectionError(voter_id, "not an active houseguest")
        if voter.is_hoh or voter.is_nominated:
            raise InvalidSelectionError(voter_id, "the HoH and nominees do not vote")
        if evict_id not in {n.id for n in snapshot.nominees()}:
            raise InvalidSelectionError(evict_id, "not on the block")
        self._emit_vote(snapshot, voter_id, evict_id)

    # ── veto ─────────────────────────────────────────────────

    def ai_veto(
        self, snapshot: GameSnapshot, threshold: Optional[float] = None
    ) -> VetoDecision:
        holder = self._require_pov_holder(snapshot)
        decision = decide_veto(
            holder,
            snapshot.nominees(),
            snapshot,
            threshold=settings.VETO_USE_THRESHOLD if threshold is None else threshold,
        )
        self.apply_veto(snapshot, decision.use_veto, decision.save_id)
        return decision

    def apply_veto(
        self, snapshot: GameSnapshot, use_veto: bool, save_id: Optional[str] = None
    ) -> None:
        holder = self._require_pov_holder(snapshot)
        nominee_ids = [n.id for n in snapshot.nominees()]
        if use_veto:
            if save_id is None:
                raise InvalidSelectionError("", "the veto needs a nominee to save")
            validate_veto_save(snapshot, save_id)
            row = self._db.get(HouseguestModel, save_id)
            row.is_nominated = False
            self._db.commit()
            logger.info(f"{holder.name} used the veto on {save_id}")
        else:
            logger.info(f"{holder.name} kept nominations the same")

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.VETO_DECIDED,
                data={
                    "pov_holder_id": holder.id,
                    "used": use_veto,
                    "saved_id": save_id if use_veto else None,
                    "nominee_ids": [n for n in nominee_ids if not (use_veto and n == save_id)],
                    "week": snapshot.week,
                    "dedup_key": f"{snapshot.week}:{holder.id}",
                },
                source="decision_service",
            )
        )

    # ── replacement nominee ──────────────────────────────────

    def ai_replacement(
        self, snapshot: GameSnapshot, saved_id: Optional[str] = None
    ) -> Optional[str]:
        """Replacement chosen by the HoH. None when nobody is eligible."""
        hoh = self._require_hoh(snapshot)
        replacement_id = choose_replacement_nominee(hoh, snapshot, saved_id)
        if replacement_id is None:
            logger.warning("No eligible replacement nominee")
            return None
        self.apply_replacement(snapshot, replacement_id, saved_id)
        return replacement_id

    def apply_replacement(
        self, snapshot: GameSnapshot, nominee_id: str, saved_id: Optional[str] = None
    ) -> None:
        hoh = self._require_hoh(snapshot)
        validate_replacement(snapshot, nominee_id, saved_id)
        row = self._db.get(HouseguestModel, nominee_id)
        row.is_nominated = True
        self._db.commit()
        logger.info(f"{hoh.name} named {nominee_id} as the replacement nominee")

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.NOMINEE_REPLACED,
                data={
                    "nominator_id": hoh.id,
                    "nominee_ids": [nominee_id],
                    "saved_id": saved_id,
                    "week": snapshot.week,
                    "dedup_key": f"{snapshot.week}:{nominee_id}",
                },
                source="decision_service",
            )
        )

    # ── final two ────────────────────────────────────────────

    def ai_finalist(self, snapshot: GameSnapshot) -> str:
        hoh = self._require_hoh(snapshot)
        candidates = [h for h in snapshot.active_houseguests() if h.id != hoh.id]
        selected_id = choose_finalist(
            hoh, candidates, snapshot, base_weights=weights_from_settings()
        )
        self.record_finalist(snapshot, selected_id)
        return selected_id

    def record_finalist(self, snapshot: GameSnapshot, selected_id: str) -> None:
        hoh = self._require_hoh(snapshot)
        selected = snapshot.get_houseguest(selected_id)
        if selected is None or not selected.is_active or selected_id == hoh.id:
            raise InvalidSelectionError(selected_id, "not an eligible finalist")
        logger.info(f"{hoh.name} takes {selected.name} to the final two")
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.FINALIST_SELECTED,
                data={
                    "selector_id": hoh.id,
                    "selected_id": selected_id,
                    "week": snapshot.week,
                    "dedup_key": f"{snapshot.week}:{hoh.id}",
                },
                source="decision_service",
            )
        )

    # ── internal helpers ─────────────────────────────────────

    def _emit_vote(self, snapshot: GameSnapshot, voter_id: str, evict_id: str) -> None:
        logger.info(f"{voter_id} votes to evict {evict_id}")
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.VOTE_CAST,
                data={
                    "voter_id": voter_id,
                    "evict_id": evict_id,
                    "week": snapshot.week,
                    "dedup_key": f"{snapshot.week}:{voter_id}",
                },
                source="decision_service",
            )
        )

    @staticmethod
    def _eligible_voters(
        snapshot: GameSnapshot, voter_ids: Optional[Sequence[str]]
    ) -> List[Houseguest]:
        voters = [
            h
            for h in snapshot.active_houseguests()
            if not h.is_hoh and not h.is_nominated and not h.is_player
        ]
        if voter_ids is not None:
            wanted = set(voter_ids)
            voters = [h for h in voters if h.id in wanted]
        return voters

    @staticmethod
    def _require_hoh(snapshot: GameSnapshot) -> Houseguest:
        hoh = snapshot.hoh()
        if hoh is None:
            raise ValueError("There is no Head of Household")
        return hoh

    @staticmethod
    def _require_pov_holder(snapshot: GameSnapshot) -> Houseguest:
        for h in snapshot.active_houseguests():
            if h.is_pov_holder:
                return h
        raise ValueError("Nobody holds the Power of Veto")
