"""Deal obligations, AI proposals and player-offer evaluation"""

import copy
import random

import pytest

from src.core.alliance.models import Alliance
from src.core.deal.evaluation import (
    acceptance_chance,
    evaluate_player_deal,
    suggest_counter_offer,
)
from src.core.deal.lifecycle import DealAction, build_deal, evaluate_deal_for_action
from src.core.deal.models import (
    DealContext,
    DealStatus,
    DealType,
    ObligationSeverity,
)
from src.core.deal.obligations import check_obligation, collect_obligations
from src.core.deal.proposals import (
    generate_proposals,
    milestone_proposal,
    proposals_from,
    reputation_penalty,
)
from src.core.game_state import GamePhase, GameSnapshot
from src.core.houseguest.models import CompetitionWins, Houseguest
from src.core.relationship.store import InMemoryRelationshipStore


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _hg(hid: str, **kwargs) -> Houseguest:
    return Houseguest(id=hid, name=hid.title(), **kwargs)


def _deal(deal_type, a="ann", b="pat", status=DealStatus.ACTIVE, deal_id=None, **kwargs):
    return build_deal(
        deal_id or f"{deal_type.value}-{a}-{b}", deal_type, a, b, week=1, status=status, **kwargs
    )


def _snapshot(houseguests, scores=None, deals=(), alliances=(), week=1):
    return GameSnapshot(
        houseguests=list(houseguests),
        relationships=InMemoryRelationshipStore(scores or {}),
        deals=list(deals),
        alliances=list(alliances),
        week=week,
    )


# ── obligations ──────────────────────────────────────────────


class TestObligations:
    def test_safety_pact_critical_when_partner_targeted(self):
        snapshot = _snapshot(
            [_hg("pat", is_player=True), _hg("ann")],
            deals=[_deal(DealType.SAFETY_AGREEMENT)],
        )
        obligations = collect_obligations(snapshot, "pat", GamePhase.NOMINATION, ["ann"])
        assert len(obligations) == 1
        assert obligations[0].severity == ObligationSeverity.CRITICAL
        assert obligations[0].partner_name == "Ann"
        assert obligations[0].warning_message == "You have a Safety Pact with Ann"

    def test_safety_pact_quiet_when_partner_safe(self):
        snapshot = _snapshot(
            [_hg("pat", is_player=True), _hg("ann")],
            deals=[_deal(DealType.SAFETY_AGREEMENT)],
        )
        assert collect_obligations(snapshot, "pat", GamePhase.NOMINATION, ["cat"]) == []

    def test_target_agreement_warning(self):
        deal = _deal(DealType.TARGET_AGREEMENT, context=DealContext(target_houseguest_id="cat"))
        found = check_obligation(deal, GamePhase.NOMINATION, "ann", [])
        assert found.severity == ObligationSeverity.WARNING

    def test_target_agreement_satisfied(self):
        deal = _deal(DealType.TARGET_AGREEMENT, context=DealContext(target_houseguest_id="cat"))
        assert check_obligation(deal, GamePhase.NOMINATION, "ann", ["cat"]) is None

    @pytest.mark.parametrize(
        "deal_type,phase,targets,severity",
        [
            (DealType.VETO_USE, GamePhase.POV_MEETING, ["ann"], ObligationSeverity.CRITICAL),
            (DealType.VOTE_TOGETHER, GamePhase.EVICTION, [], ObligationSeverity.WARNING),
            (DealType.FINAL_TWO, GamePhase.FINAL_HOH, [], ObligationSeverity.CRITICAL),
        ],
    )
    def test_phase_specific(self, deal_type, phase, targets, severity):
        found = check_obligation(_deal(deal_type), phase, "ann", targets)
        assert found is not None
        assert found.severity == severity

    def test_wrong_phase_is_silent(self):
        assert check_obligation(_deal(DealType.FINAL_TWO), GamePhase.EVICTION, "ann", []) is None

    def test_inactive_deals_ignored(self):
        snapshot = _snapshot(
            [_hg("pat", is_player=True), _hg("ann")],
            deals=[_deal(DealType.VOTE_TOGETHER, status=DealStatus.BROKEN)],
        )
        assert collect_obligations(snapshot, "pat", GamePhase.EVICTION) == []

    def test_no_snapshot(self):
        assert collect_obligations(None, "pat", GamePhase.EVICTION) == []

    def test_check_leaves_deal_untouched(self):
        deal = _deal(DealType.SAFETY_AGREEMENT)
        before = copy.deepcopy(deal)
        first = check_obligation(deal, GamePhase.NOMINATION, "ann", ["ann"], "Ann")
        second = check_obligation(deal, GamePhase.NOMINATION, "ann", ["ann"], "Ann")
        assert deal == before
        assert first == second
        assert deal.status == DealStatus.ACTIVE

    def test_collect_leaves_snapshot_deals_untouched(self):
        deals = [_deal(DealType.VETO_USE), _deal(DealType.FINAL_TWO, deal_id="f2")]
        snapshot = _snapshot([_hg("pat", is_player=True), _hg("ann")], deals=deals)
        before = copy.deepcopy(snapshot.deals)
        collect_obligations(snapshot, "pat", GamePhase.POV_MEETING, ["ann"])
        collect_obligations(snapshot, "pat", GamePhase.FINAL_HOH)
        assert snapshot.deals == before


# ── vote_together with a partner on the block ────────────────


class TestVoteTogetherOnTheBlock:
    """A nominated partner cannot vote, so the other partner's vote decides."""

    def _snapshot(self):
        return _snapshot(
            [_hg("pat", is_player=True), _hg("ann", is_nominated=True), _hg("cat", is_nominated=True)]
        )

    def test_evicting_partner_breaks_deal(self):
        deal = _deal(DealType.VOTE_TOGETHER, a="ann", b="pat")
        params = {"votes": {"pat": "ann"}}
        assert (
            evaluate_deal_for_action(deal, DealAction.CAST_VOTE, params, self._snapshot())
            == DealStatus.BROKEN
        )

    def test_keeping_partner_fulfils_deal(self):
        deal = _deal(DealType.VOTE_TOGETHER, a="ann", b="pat")
        params = {"votes": {"pat": "cat"}}
        assert (
            evaluate_deal_for_action(deal, DealAction.CAST_VOTE, params, self._snapshot())
            == DealStatus.FULFILLED
        )

    def test_nominee_list_in_payload(self):
        deal = _deal(DealType.VOTE_TOGETHER, a="pat", b="ann")
        params = {"votes": {"pat": "cat"}, "nominee_ids": ["ann", "cat"]}
        assert evaluate_deal_for_action(deal, DealAction.CAST_VOTE, params) == DealStatus.FULFILLED

    def test_vote_against_partner_without_context(self):
        deal = _deal(DealType.VOTE_TOGETHER, a="ann", b="pat")
        params = {"votes": {"pat": "ann"}}
        assert evaluate_deal_for_action(deal, DealAction.CAST_VOTE, params) == DealStatus.BROKEN

    def test_both_voting_partners_still_wait(self):
        snapshot = _snapshot(
            [_hg("pat", is_player=True), _hg("ann"), _hg("cat", is_nominated=True)]
        )
        deal = _deal(DealType.VOTE_TOGETHER, a="ann", b="pat")
        params = {"votes": {"pat": "cat"}}
        assert evaluate_deal_for_action(deal, DealAction.CAST_VOTE, params, snapshot) is None


# ── proposals ────────────────────────────────────────────────


class TestProposals:
    def test_nothing_below_minimum_relationship(self):
        player, ann = _hg("pat", is_player=True), _hg("ann", is_nominated=True)
        snapshot = _snapshot([player, ann], {("ann", "pat"): 5})
        assert proposals_from(ann, player, snapshot) == []

    def test_broken_deals_cost_reputation(self):
        player, ann = _hg("pat", is_player=True), _hg("ann", is_nominated=True)
        broken = _deal(DealType.SAFETY_AGREEMENT, a="cat", status=DealStatus.BROKEN)
        snapshot = _snapshot([player, ann, _hg("cat")], {("ann", "pat"): 20}, deals=[broken])
        assert reputation_penalty(snapshot, "pat") == 15
        assert proposals_from(ann, player, snapshot) == []

    def test_hoh_player_gets_safety_and_partnership(self):
        player, ann = _hg("pat", is_player=True, is_hoh=True), _hg("ann")
        snapshot = _snapshot([player, ann], {("ann", "pat"): 45}, week=3)
        proposals = proposals_from(ann, player, snapshot, now=1.0)
        assert [p.deal.type for p in proposals] == [
            DealType.SAFETY_AGREEMENT,
            DealType.PARTNERSHIP,
        ]
        assert proposals[0].id == "proposal-3-ann-safety_agreement"
        assert proposals[0].deal.proposer_id == "ann"
        assert proposals[0].deal.recipient_id == "pat"
        assert proposals[0].timestamp == 1.0

    def test_partnership_plus_safety_becomes_alliance_invite(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        deals = [_deal(DealType.PARTNERSHIP), _deal(DealType.SAFETY_AGREEMENT)]
        snapshot = _snapshot([player, ann], {("ann", "pat"): 45}, deals=deals)
        assert [p.deal.type for p in proposals_from(ann, player, snapshot)] == [
            DealType.ALLIANCE_INVITE
        ]

    def test_common_threat_target(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        beast = _hg("zed", competitions_won=CompetitionWins(hoh=2))
        others = [_hg(f"g{i}") for i in range(5)]
        snapshot = _snapshot([player, ann, beast, *others], {("ann", "pat"): 30})
        proposals = proposals_from(ann, player, snapshot)
        assert [p.deal.type for p in proposals] == [DealType.TARGET_AGREEMENT]
        assert proposals[0].deal.context.target_houseguest_id == "zed"
        assert "Zed" in proposals[0].reasoning

    def test_generate_prefers_urgent_vote_together(self):
        player, ann = _hg("pat", is_player=True), _hg("ann", is_nominated=True)
        snapshot = _snapshot([player, ann], {("ann", "pat"): 50})
        proposals = generate_proposals(snapshot, max_proposals=3, now=0.0)
        assert len(proposals) == 1
        assert proposals[0].deal.type == DealType.VOTE_TOGETHER

    def test_generate_avoids_repeats(self):
        """One offer per houseguest and per deal type while candidates abound."""
        player = _hg("pat", is_player=True, is_hoh=True)
        npcs = [_hg(f"npc{i}") for i in range(4)]
        others = [_hg(f"g{i}") for i in range(4)]
        scores = {(n.id, "pat"): 45 for n in npcs}
        snapshot = _snapshot([player, *npcs, *others], scores)
        proposals = generate_proposals(snapshot, max_proposals=3, now=0.0)
        assert [p.deal.type for p in proposals] == [
            DealType.SAFETY_AGREEMENT,
            DealType.PARTNERSHIP,
        ]
        assert [p.from_npc_id for p in proposals] == ["npc0", "npc1"]

    def test_generate_without_player(self):
        assert generate_proposals(_snapshot([_hg("ann"), _hg("bob")])) == []
        assert generate_proposals(None) == []


class TestMilestoneProposal:
    def test_each_threshold_maps_to_a_deal(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann])
        assert milestone_proposal(ann, player, 20, 30, snapshot).deal.type == DealType.INFORMATION_SHARING
        assert milestone_proposal(ann, player, 45, 55, snapshot).deal.type == DealType.SAFETY_AGREEMENT
        assert milestone_proposal(ann, player, 70, 80, snapshot).deal.type == DealType.PARTNERSHIP

    def test_existing_deal_is_skipped(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann], deals=[_deal(DealType.SAFETY_AGREEMENT)])
        assert milestone_proposal(ann, player, 45, 55, snapshot) is None

    def test_only_toward_the_player(self):
        ann, bob = _hg("ann"), _hg("bob")
        assert milestone_proposal(ann, bob, 20, 30, _snapshot([ann, bob])) is None


# ── player offers ────────────────────────────────────────────


class TestAcceptanceChance:
    def test_neutral_baseline(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        chance, reasoning = acceptance_chance(ann, player, DealType.PARTNERSHIP, _snapshot([player, ann]))
        assert chance == 30
        assert reasoning == ""

    def test_clamped_high(self):
        player, ann = _hg("pat", is_player=True), _hg("ann", traits=["Loyal"])
        snapshot = _snapshot([player, ann], {("ann", "pat"): 100})
        chance, _ = acceptance_chance(ann, player, DealType.SAFETY_AGREEMENT, snapshot)
        assert chance == 95

    def test_clamped_low(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann], {("ann", "pat"): -100})
        chance, _ = acceptance_chance(ann, player, DealType.PARTNERSHIP, snapshot)
        assert chance == 5

    def test_nominated_houseguest_wants_votes(self):
        player, ann = _hg("pat", is_player=True), _hg("ann", is_nominated=True)
        chance, _ = acceptance_chance(ann, player, DealType.VOTE_TOGETHER, _snapshot([player, ann]))
        assert chance == 65

    def test_refuses_to_target_own_alliance(self):
        player, ann, cat = _hg("pat", is_player=True), _hg("ann"), _hg("cat")
        alliance = Alliance(
            id="al1", name="Duo", member_ids=["ann", "cat"], founder_id="ann", created_week=1
        )
        snapshot = _snapshot([player, ann, cat], alliances=[alliance])
        chance, reasoning = acceptance_chance(
            ann,
            player,
            DealType.TARGET_AGREEMENT,
            snapshot,
            DealContext(target_houseguest_id="cat"),
        )
        assert chance == 5
        assert reasoning == "I can't target someone from my own alliance."


class TestEvaluatePlayerDeal:
    def test_accepts_under_the_roll(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        evaluation = evaluate_player_deal(
            ann, player, DealType.PARTNERSHIP, _snapshot([player, ann]), rng=FixedRandom(0.2)
        )
        assert evaluation.would_accept is True
        assert evaluation.reasoning == "This could be beneficial for both of us."

    def test_declines_over_the_roll(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        evaluation = evaluate_player_deal(
            ann, player, DealType.PARTNERSHIP, _snapshot([player, ann]), rng=FixedRandom(0.5)
        )
        assert evaluation.would_accept is False
        assert evaluation.reasoning == "I don't think I can trust you with that."


class TestCounterOffer:
    def test_final_two_countered_with_partnership(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann], {("ann", "pat"): 40})
        counter = suggest_counter_offer(
            ann, player, DealType.FINAL_TWO, snapshot, rng=FixedRandom(0.1)
        )
        assert counter.counter_type == DealType.PARTNERSHIP
        assert counter.acceptance_chance == 50
        assert "Partnership" in counter.reasoning

    def test_no_counter_when_roll_fails(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann], {("ann", "pat"): 40})
        assert suggest_counter_offer(ann, player, DealType.FINAL_TWO, snapshot, rng=FixedRandom(0.9)) is None

    def test_no_alternatives(self):
        player, ann = _hg("pat", is_player=True), _hg("ann")
        snapshot = _snapshot([player, ann], {("ann", "pat"): 40})
        assert (
            suggest_counter_offer(
                ann, player, DealType.INFORMATION_SHARING, snapshot, rng=FixedRandom(0.0)
            )
            is None
        )
