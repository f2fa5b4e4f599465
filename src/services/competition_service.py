"""Competition Service - runs, stores and rewards competitions"""

import random
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from src.core.competition.models import (
    Competition,
    CompetitionCategory,
    CompetitionType,
)
from src.core.competition.runner import (
    CompetitionOptions,
    run_competition,
    run_endurance_competition,
    select_category,
)
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.houseguest.models import Houseguest, HouseguestStatus
from src.core.logging import get_logger
from src.db.mappers import competition_from_orm, competition_to_orm, houseguest_from_orm
from src.db.models import CompetitionModel, HouseguestModel

logger = get_logger(__name__)


class CompetitionService:
    """HoH / PoV / Final HoH competitions"""

    def __init__(
        self,
        db_session: Session,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._db = db_session
        self._bus = event_bus
        self._rng = rng or random.Random()

    # ── lookups ──────────────────────────────────────────────

    def get_competition(self, competition_id: str) -> Optional[Competition]:
        row = self._db.get(CompetitionModel, competition_id)
        return competition_from_orm(row) if row is not None else None

    def list_competitions(self, week: Optional[int] = None) -> List[Competition]:
        query = self._db.query(CompetitionModel)
        if week is not None:
            query = query.filter(CompetitionModel.week == week)
        return [competition_from_orm(r) for r in query.order_by(CompetitionModel.created_at)]

    # ── running ──────────────────────────────────────────────

    def run(
        self,
        comp_type: CompetitionType,
        week: int,
        participant_ids: Optional[Sequence[str]] = None,
        category: Optional[CompetitionCategory] = None,
    ) -> Competition:
        """Resolve a competition, persist it and reward the winner.

        Participants default to every active houseguest. Endurance
        categories run as last-one-standing.
        """
        participants = self._load_participants(participant_ids)
        nominees = [h.id for h in participants if h.is_nominated]
        category = category or select_category(comp_type, self._rng)
        options = CompetitionOptions(
            type=comp_type,
            week=week,
            participants=participants,
            category=category,
            nominees=nominees,
        )
        if category == CompetitionCategory.ENDURANCE:
            competition = run_endurance_competition(options, rng=self._rng)
        else:
            competition = run_competition(options, rng=self._rng)

        self._db.add(competition_to_orm(competition))
        self._reward_winner(competition)
        self._db.commit()

        logger.info(
            f"{comp_type.value} competition '{competition.name}' "
            f"({competition.category.value}) won by {competition.winner_id}"
        )
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.COMPETITION_COMPLETED,
                data={
                    "competition_id": competition.id,
                    "comp_type": comp_type.value,
                    "category": competition.category.value,
                    "week": week,
                    "winner_id": competition.winner_id,
                    "dedup_key": competition.id,
                },
                source="competition_service",
            )
        )
        return competition

    # ── internal helpers ─────────────────────────────────────

    def _load_participants(
        self, participant_ids: Optional[Sequence[str]]
    ) -> List[Houseguest]:
        query = self._db.query(HouseguestModel).filter(
            HouseguestModel.status == HouseguestStatus.ACTIVE.value
        )
        rows = {r.houseguest_id: r for r in query.all()}
        if participant_ids is None:
            return [houseguest_from_orm(rows[k]) for k in sorted(rows)]

        missing = [hid for hid in participant_ids if hid not in rows]
        if missing:
            raise ValueError(f"Not active houseguests: {missing}")
        return [houseguest_from_orm(rows[hid]) for hid in dict.fromkeys(participant_ids)]

    def _reward_winner(self, competition: Competition) -> None:
        winner = self._db.get(HouseguestModel, competition.winner_id)
        if winner is None:
            return
        if competition.type == CompetitionType.HOH:
            winner.hoh_wins += 1
            for row in self._db.query(HouseguestModel).all():
                row.is_hoh = row.houseguest_id == winner.houseguest_id
        elif competition.type == CompetitionType.POV:
            winner.pov_wins += 1
            for row in self._db.query(HouseguestModel).all():
                row.is_pov_holder = row.houseguest_id == winner.houseguest_id
        else:
            winner.other_wins += 1
            # the part 3 winner is the final HoH
            if competition.type == CompetitionType.FINAL_HOH_3:
                winner.hoh_wins += 1
                for row in self._db.query(HouseguestModel).all():
                    row.is_hoh = row.houseguest_id == winner.houseguest_id
