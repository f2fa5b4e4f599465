"""DealService: offers, proposals, action resolution, expiry, obligations"""

import random

import pytest

from src.core.deal.lifecycle import DealAction
from src.core.deal.models import DealContext, DealStatus, DealType, ObligationSeverity
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.core.houseguest.models import Houseguest
from src.core.relationship.models import RelationshipDelta
from src.services.deal_service import DealService, delta_from_dict, delta_to_dict
from src.services.game_state_service import GameStateService
from src.services.relationship_service import RelationshipService


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class ScriptedRandom(random.Random):
    """Returns the scripted values in order, then repeats the last one."""

    def __init__(self, values) -> None:
        super().__init__(0)
        self.values = list(values)

    def random(self) -> float:
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


def _hg(hid: str, **kwargs) -> Houseguest:
    return Houseguest(id=hid, name=hid.title(), **kwargs)


@pytest.fixture
def game(db_session, bus):
    svc = GameStateService(db_session, bus)
    svc.register_houseguests([_hg("amy", is_player=True), _hg("bea"), _hg("cal")])
    return svc


@pytest.fixture
def relationships(db_session, bus):
    return RelationshipService(db_session, bus)


def _deals(db_session, bus, rng=None):
    return DealService(db_session, bus, rng=rng or FixedRandom(0.9))


def _capture(bus, event_type):
    received = []
    bus.subscribe(event_type, received.append)
    return received


class TestCreate:
    def test_create_deal_is_active(self, db_session, bus, game):
        accepted = _capture(bus, EventTypes.DEAL_ACCEPTED)
        service = _deals(db_session, bus)
        deal = service.create_deal(DealType.SAFETY_AGREEMENT, "amy", "bea", week=1)
        assert deal.status == DealStatus.ACTIVE
        assert service.get_deal(deal.id).title == "Safety Pact"
        assert [d.id for d in service.deals_for("bea", active_only=True)] == [deal.id]

        data = accepted[0].data
        assert data["deal"]["id"] == deal.id
        assert data["deltas"][0]["change"] == 8
        assert data["deltas"][0]["event_type"] == "deal_made"

    def test_needs_two_houseguests(self, db_session, bus, game):
        with pytest.raises(ValueError):
            _deals(db_session, bus).create_deal(DealType.PARTNERSHIP, "amy", "amy", week=1)

    def test_target_name_in_description(self, db_session, bus, game):
        deal = _deals(db_session, bus).create_deal(
            DealType.TARGET_AGREEMENT,
            "amy",
            "bea",
            week=1,
            context=DealContext(target_houseguest_id="cal"),
            target_name="Cal",
        )
        assert deal.description == "Target Cal if either wins HoH"
        assert deal.context.target_houseguest_id == "cal"

    def test_delta_dict_round_trip(self):
        delta = RelationshipDelta("amy", "bea", -3, "deal_declined", "Declined", True)
        assert delta_from_dict(delta_to_dict(delta)) == delta


class TestOffer:
    def test_accepted(self, db_session, bus, game):
        service = _deals(db_session, bus, rng=FixedRandom(0.0))
        result = service.offer_deal(
            game.build_snapshot(), "amy", "bea", DealType.INFORMATION_SHARING
        )
        assert result.evaluation.would_accept is True
        assert result.deal.status == DealStatus.ACTIVE
        assert result.counter_offer is None
        assert service.get_deals(DealStatus.ACTIVE)[0].id == result.deal.id

    def test_declined_with_counter(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 60)
        declined = _capture(bus, EventTypes.DEAL_DECLINED)
        service = _deals(db_session, bus, rng=ScriptedRandom([0.9, 0.1, 0.0]))
        result = service.offer_deal(game.build_snapshot(), "amy", "bea", DealType.FINAL_TWO)

        assert result.evaluation.acceptance_chance == 60
        assert result.evaluation.would_accept is False
        assert result.deal is None
        assert result.counter_offer.counter_type == DealType.PARTNERSHIP
        assert service.get_deals(DealStatus.DECLINED)[0].type == DealType.FINAL_TWO
        assert declined[0].data["deltas"][0]["change"] == -3

    def test_unknown_houseguest(self, db_session, bus, game):
        with pytest.raises(ValueError):
            _deals(db_session, bus).offer_deal(
                game.build_snapshot(), "amy", "nobody", DealType.PARTNERSHIP
            )


class TestProposals:
    def test_generate_and_store(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        proposed = _capture(bus, EventTypes.DEAL_PROPOSED)
        service = _deals(db_session, bus)

        proposals = service.generate_proposals(game.build_snapshot())
        assert [p.deal.type for p in proposals] == [DealType.PARTNERSHIP]
        assert proposals[0].from_npc_id == "bea"
        assert proposed[0].data["proposal_id"] == proposals[0].id

        pending = service.get_pending_proposals("amy")
        assert [p.id for p in pending] == [proposals[0].id]
        assert pending[0].deal.type == DealType.PARTNERSHIP

    def test_same_proposal_not_repeated(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        service = _deals(db_session, bus)
        service.generate_proposals(game.build_snapshot())
        assert service.generate_proposals(game.build_snapshot()) == []

    def test_accept(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        service = _deals(db_session, bus)
        proposal = service.generate_proposals(game.build_snapshot())[0]

        deal = service.respond_to_proposal(proposal.id, accept=True)
        assert deal.status == DealStatus.ACTIVE
        assert deal.id != proposal.id
        assert deal.is_between("amy", "bea")
        assert service.get_pending_proposals("amy") == []
        with pytest.raises(ValueError, match="already answered"):
            service.respond_to_proposal(proposal.id, accept=False)

    def test_decline(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        service = _deals(db_session, bus)
        proposal = service.generate_proposals(game.build_snapshot())[0]
        assert service.respond_to_proposal(proposal.id, accept=False) is None
        assert service.get_deals(DealStatus.DECLINED)[0].type == DealType.PARTNERSHIP

    def test_old_proposals_expire_next_week(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        service = _deals(db_session, bus)
        old = service.generate_proposals(game.build_snapshot())[0]

        game.advance_week()
        fresh = service.generate_proposals(game.build_snapshot())
        assert [p.id for p in service.get_pending_proposals("amy")] == [p.id for p in fresh]
        assert old.id not in [p.id for p in fresh]
        with pytest.raises(ValueError, match="expired"):
            service.respond_to_proposal(old.id, accept=True)
        assert service.get_deals(DealStatus.ACTIVE) == []

    def test_expire_keeps_current_week(self, db_session, bus, game, relationships):
        relationships.seed_relationship("amy", "bea", 45)
        service = _deals(db_session, bus)
        proposal = service.generate_proposals(game.build_snapshot())[0]
        assert service.expire_proposals(1) == []
        expired = service.expire_proposals(2)
        assert [p.id for p in expired] == [proposal.id]
        assert service.get_pending_proposals("amy") == []

    def test_unknown_proposal(self, db_session, bus, game):
        with pytest.raises(ValueError, match="Proposal not found"):
            _deals(db_session, bus).respond_to_proposal("nope", accept=True)

    def test_milestone_proposal(self, db_session, bus, game):
        service = _deals(db_session, bus)
        proposal = service.create_milestone_proposal(game.build_snapshot(), "bea", "amy", 45, 52)
        assert proposal.deal.type == DealType.SAFETY_AGREEMENT
        assert service.create_milestone_proposal(game.build_snapshot(), "bea", "amy", 10, 20) is None
        assert service.create_milestone_proposal(game.build_snapshot(), "nobody", "amy", 45, 52) is None


class TestProcessAction:
    def test_nomination_breaks_safety_pact(self, db_session, bus, game):
        broken = _capture(bus, EventTypes.DEAL_BROKEN)
        service = _deals(db_session, bus)
        deal = service.create_deal(DealType.SAFETY_AGREEMENT, "bea", "amy", week=1)

        outcomes = service.process_action(
            game.build_snapshot(),
            DealAction.NOMINATE,
            {"nominator_id": "amy", "nominee_ids": ["bea", "cal"]},
        )
        assert len(outcomes) == 1
        assert outcomes[0].impact_score == -30
        assert service.get_deal(deal.id).status == DealStatus.BROKEN

        data = broken[0].data
        assert data["actor_id"] == "amy"
        assert data["impact_score"] == -30
        assert data["alliance_stability_change"] == -10
        assert data["deltas"][0]["description"] == "Amy broke their Safety Pact deal"

    def test_betrayal_spreads(self, db_session, bus, game):
        service = _deals(db_session, bus, rng=FixedRandom(0.0))
        service.create_deal(DealType.SAFETY_AGREEMENT, "amy", "bea", week=1)
        outcome = service.process_action(
            game.build_snapshot(),
            DealAction.NOMINATE,
            {"nominator_id": "amy", "nominee_ids": ["bea"]},
        )[0]
        heard = [d for d in outcome.deltas if d.event_type == "heard_about_betrayal"]
        assert [(d.guest_a, d.guest_b, d.change) for d in heard] == [("cal", "amy", -5)]

    def test_veto_fulfils(self, db_session, bus, game):
        fulfilled = _capture(bus, EventTypes.DEAL_FULFILLED)
        service = _deals(db_session, bus)
        deal = service.create_deal(DealType.VETO_USE, "bea", "amy", week=1)
        outcomes = service.process_action(
            game.build_snapshot(),
            DealAction.VETO_DECISION,
            {"pov_holder_id": "amy", "used": True, "saved_id": "bea"},
        )
        assert outcomes[0].impact_score == 24
        assert service.get_deal(deal.id).status == DealStatus.FULFILLED
        assert fulfilled[0].data["alliance_stability_change"] == 3

    def test_unrelated_action(self, db_session, bus, game):
        service = _deals(db_session, bus)
        service.create_deal(DealType.PARTNERSHIP, "amy", "bea", week=1)
        outcomes = service.process_action(
            game.build_snapshot(),
            DealAction.NOMINATE,
            {"nominator_id": "amy", "nominee_ids": ["bea"]},
        )
        assert outcomes == []


class TestExpiryAndObligations:
    def test_vote_together_expires(self, db_session, bus, game):
        expired_events = _capture(bus, EventTypes.DEAL_EXPIRED)
        service = _deals(db_session, bus)
        vote = service.create_deal(DealType.VOTE_TOGETHER, "amy", "bea", week=1)
        service.create_deal(DealType.PARTNERSHIP, "amy", "cal", week=1)

        assert service.expire_deals(1) == []
        expired = service.expire_deals(2)
        assert [d.id for d in expired] == [vote.id]
        assert service.get_deal(vote.id).status == DealStatus.EXPIRED
        assert expired_events[0].data["deal_id"] == vote.id

    def test_obligation_warning(self, db_session, bus, game):
        warnings = _capture(bus, EventTypes.OBLIGATION_WARNING)
        service = _deals(db_session, bus)
        deal = service.create_deal(DealType.SAFETY_AGREEMENT, "amy", "bea", week=1)
        obligations = service.get_obligations(
            game.build_snapshot(), "amy", GamePhase.NOMINATION, ["bea"]
        )
        assert len(obligations) == 1
        assert obligations[0].severity == ObligationSeverity.CRITICAL
        assert obligations[0].partner_name == "Bea"
        assert warnings[0].data["deal_id"] == deal.id
        assert warnings[0].data["severity"] == "critical"

    def test_no_obligation_when_not_targeted(self, db_session, bus, game):
        service = _deals(db_session, bus)
        service.create_deal(DealType.SAFETY_AGREEMENT, "amy", "bea", week=1)
        assert service.get_obligations(
            game.build_snapshot(), "amy", GamePhase.NOMINATION, ["cal"]
        ) == []
