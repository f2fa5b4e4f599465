"""GameStateService: roster, season clock and snapshots"""

import pytest

from src.core.deal.models import DealType
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.core.houseguest.models import Houseguest, HouseguestStats, HouseguestStatus
from src.core.relationship.models import RelationshipDelta
from src.services.deal_service import DealService
from src.services.game_state_service import GameStateService
from src.services.relationship_service import RelationshipService


def _hg(hid: str, **kwargs) -> Houseguest:
    return Houseguest(id=hid, name=hid.title(), **kwargs)


@pytest.fixture
def service(db_session, bus):
    svc = GameStateService(db_session, bus)
    svc.register_houseguests(
        [
            _hg("amy", is_player=True, traits=["Loyal"]),
            _hg("bea", stats=HouseguestStats(physical=9)),
            _hg("cal"),
        ]
    )
    return svc


class TestClock:
    def test_defaults(self, service):
        assert service.get_week() == 1
        assert service.get_phase() == GamePhase.SETUP

    def test_set_phase_emits(self, service, bus):
        received = []
        bus.subscribe(EventTypes.PHASE_CHANGED, received.append)
        service.set_phase(GamePhase.HOH)
        assert service.get_phase() == GamePhase.HOH
        assert received[0].data["old_phase"] == "Setup"
        assert received[0].data["new_phase"] == "HoH"
        assert received[0].data["week"] == 1

    def test_same_phase_is_silent(self, service, bus):
        service.set_phase(GamePhase.HOH)
        received = []
        bus.subscribe(EventTypes.PHASE_CHANGED, received.append)
        service.set_phase(GamePhase.HOH)
        assert received == []

    def test_advance_week_resets_roles(self, service):
        service.set_hoh("bea")
        service.set_nominees(["amy", "cal"])
        service.set_phase(GamePhase.EVICTION)
        assert service.advance_week() == 2
        assert service.get_week() == 2
        assert service.get_phase() == GamePhase.HOH
        for hg in service.list_houseguests():
            assert not (hg.is_hoh or hg.is_nominated or hg.is_pov_holder)


class TestRoster:
    def test_round_trip(self, service):
        amy = service.get_houseguest("amy")
        assert amy.is_player is True
        assert amy.traits == ["Loyal"]
        assert service.get_houseguest("bea").stats.physical == 9
        assert service.get_houseguest("nobody") is None

    def test_duplicate_rejected(self, service):
        with pytest.raises(ValueError):
            service.register_houseguests([_hg("amy")])

    def test_single_player(self, db_session, bus):
        svc = GameStateService(db_session, bus)
        with pytest.raises(ValueError):
            svc.register_houseguests([_hg("x", is_player=True), _hg("y", is_player=True)])

    def test_require(self, service):
        with pytest.raises(ValueError):
            service.require_houseguest("nobody")

    def test_roles_are_exclusive(self, service):
        service.set_hoh("amy")
        service.set_hoh("bea")
        service.set_pov_holder("cal")
        assert [h.id for h in service.list_houseguests() if h.is_hoh] == ["bea"]
        assert service.get_houseguest("cal").is_pov_holder is True

    def test_unknown_role_holder(self, service):
        with pytest.raises(ValueError):
            service.set_hoh("nobody")
        with pytest.raises(ValueError):
            service.set_nominees(["amy", "nobody"])

    def test_eviction_clears_flags(self, service):
        service.set_nominees(["cal"])
        service.set_status("cal", HouseguestStatus.EVICTED)
        cal = service.get_houseguest("cal")
        assert cal.status == HouseguestStatus.EVICTED
        assert cal.is_nominated is False
        assert [h.id for h in service.list_houseguests(active_only=True)] == ["amy", "bea"]


class TestSnapshot:
    def test_loads_everything(self, service, db_session, bus):
        relationships = RelationshipService(db_session, bus)
        relationships.apply_delta(RelationshipDelta("amy", "bea", 30, "conversation"), week=1)
        relationships.create_alliance("Duo", ["amy", "bea"], "amy")
        DealService(db_session, bus).create_deal(DealType.SAFETY_AGREEMENT, "amy", "bea", week=1)
        service.set_hoh("cal")
        service.set_phase(GamePhase.NOMINATION)

        snapshot = service.build_snapshot()
        assert snapshot.week == 1
        assert snapshot.phase == GamePhase.NOMINATION
        assert snapshot.player().id == "amy"
        assert snapshot.hoh().id == "cal"
        # no relationship module subscribed: the deal's delta is only emitted
        assert snapshot.relationship("bea", "amy") == 30
        assert len(snapshot.relationships.get_events("amy", "bea")) == 1
        assert len(snapshot.deals) == 1
        assert len(snapshot.alliances) == 1
