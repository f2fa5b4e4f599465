"""Game API endpoint tests"""

import pytest
from fastapi.testclient import TestClient

from src.core.deal.models import DealType

CAST = [
    {"id": "amy", "name": "Amy", "is_player": True, "traits": ["Loyal"]},
    {"id": "bea", "name": "Bea", "stats": {"physical": 9}},
    {"id": "cal", "name": "Cal"},
    {"id": "dan", "name": "Dan"},
    {"id": "eve", "name": "Eve", "traits": ["Strategic"]},
]


@pytest.fixture()
def season(client: TestClient) -> TestClient:
    response = client.post("/game/houseguests", json={"houseguests": CAST})
    assert response.status_code == 200
    return client


def _roster(client: TestClient) -> dict:
    return {h["id"]: h for h in client.get("/game/state").json()["houseguests"]}


class TestSeason:
    def test_initial_state(self, client: TestClient) -> None:
        data = client.get("/game/state").json()
        assert data["success"] is True
        assert data["week"] == 1
        assert data["phase"] == "Setup"
        assert data["houseguests"] == []

    def test_register(self, season: TestClient) -> None:
        roster = _roster(season)
        assert sorted(roster) == ["amy", "bea", "cal", "dan", "eve"]
        assert roster["amy"]["is_player"] is True
        assert roster["amy"]["traits"] == ["Loyal"]
        assert roster["bea"]["status"] == "Active"

    def test_register_duplicate(self, season: TestClient) -> None:
        response = season.post("/game/houseguests", json={"houseguests": [CAST[1]]})
        assert response.status_code == 400

    def test_register_unknown_trait(self, client: TestClient) -> None:
        response = client.post(
            "/game/houseguests",
            json={"houseguests": [{"id": "zed", "name": "Zed", "traits": ["Grumpy"]}]},
        )
        assert response.status_code == 400
        assert "Unknown trait" in response.json()["detail"]

    def test_second_player_rejected(self, season: TestClient) -> None:
        response = season.post(
            "/game/houseguests",
            json={"houseguests": [{"id": "zed", "name": "Zed", "is_player": True}]},
        )
        assert response.status_code == 400
        assert "zed" not in _roster(season)

    def test_roles(self, season: TestClient) -> None:
        response = season.post(
            "/game/roles",
            json={"hoh_id": "cal", "pov_holder_id": "bea", "nominee_ids": ["dan", "eve"]},
        )
        assert response.status_code == 200
        roster = _roster(season)
        assert roster["cal"]["is_hoh"] is True
        assert roster["bea"]["is_pov_holder"] is True
        assert roster["dan"]["is_nominated"] and roster["eve"]["is_nominated"]

    def test_roles_unknown_houseguest(self, season: TestClient) -> None:
        response = season.post("/game/roles", json={"hoh_id": "nobody"})
        assert response.status_code == 404

    def test_phase_change(self, season: TestClient) -> None:
        response = season.post("/game/phase", json={"phase": "Nomination"})
        assert response.status_code == 200
        assert response.json()["phase"] == "Nomination"
        assert season.get("/game/state").json()["phase"] == "Nomination"

    def test_unknown_phase(self, season: TestClient) -> None:
        response = season.post("/game/phase", json={"phase": "Picnic"})
        assert response.status_code == 400

    def test_advance_week(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal"})
        data = season.post("/game/week/advance").json()
        assert data["week"] == 2
        assert data["phase"] == "HoH"
        assert _roster(season)["cal"]["is_hoh"] is False


class TestRelationshipsAndTrust:
    def test_seed_and_read(self, season: TestClient) -> None:
        response = season.post(
            "/game/relationships", json={"guest_a": "bea", "guest_b": "amy", "score": 60}
        )
        assert response.status_code == 200
        assert response.json()["tier"] == "friend"

        data = season.get("/game/relationships/amy/bea").json()
        assert data["score"] == 60
        assert data["label"] == "Friend"

    def test_untouched_pair_is_neutral(self, season: TestClient) -> None:
        data = season.get("/game/relationships/amy/cal").json()
        assert data["score"] == 0
        assert data["tier"] == "stranger"

    def test_errors(self, season: TestClient) -> None:
        assert season.get("/game/relationships/amy/nobody").status_code == 404
        assert season.get("/game/relationships/amy/amy").status_code == 400
        response = season.post(
            "/game/relationships", json={"guest_a": "amy", "guest_b": "amy", "score": 10}
        )
        assert response.status_code == 400
        response = season.post(
            "/game/relationships", json={"guest_a": "amy", "guest_b": "bea", "score": 150}
        )
        assert response.status_code == 422

    def test_trust(self, season: TestClient) -> None:
        data = season.get("/game/trust/bea").json()
        assert data["score"] == 50
        assert data["reputation"] == "Neutral"
        assert data["factors"]["deal_trust"] == 50

        loyal = season.get("/game/trust/amy", params={"perspective": "bea"}).json()
        assert loyal["perspective"] == "bea"
        assert loyal["score"] == 52

    def test_trust_unknown(self, season: TestClient) -> None:
        assert season.get("/game/trust/nobody").status_code == 404
        assert season.get("/game/trust/amy", params={"perspective": "nobody"}).status_code == 404


class TestDeals:
    def test_offer(self, season: TestClient) -> None:
        response = season.post(
            "/game/deals/offer",
            json={"player_id": "amy", "npc_id": "bea", "deal_type": "safety_agreement"},
        )
        assert response.status_code == 200
        data = response.json()
        assert 5 <= data["acceptance_chance"] <= 95
        if data["accepted"]:
            assert data["deal"]["status"] == "active"
        else:
            assert data["deal"] is None
        assert len(season.get("/game/deals").json()) == 1

    def test_offer_errors(self, season: TestClient) -> None:
        bad_type = season.post(
            "/game/deals/offer",
            json={"player_id": "amy", "npc_id": "bea", "deal_type": "pinky_swear"},
        )
        assert bad_type.status_code == 400
        unknown = season.post(
            "/game/deals/offer",
            json={"player_id": "amy", "npc_id": "nobody", "deal_type": "partnership"},
        )
        assert unknown.status_code == 404

    def test_list_deals_by_status(self, season: TestClient) -> None:
        season.app.state.deal_service.create_deal(DealType.PARTNERSHIP, "amy", "bea", week=1)
        assert len(season.get("/game/deals", params={"status": "active"}).json()) == 1
        assert season.get("/game/deals", params={"status": "broken"}).json() == []
        assert season.get("/game/deals", params={"status": "lost"}).status_code == 400

    def test_proposal_flow(self, season: TestClient) -> None:
        season.post("/game/relationships", json={"guest_a": "amy", "guest_b": "bea", "score": 45})

        generated = season.post("/game/proposals/generate", json={}).json()["proposals"]
        assert [p["deal"]["type"] for p in generated] == ["partnership"]
        assert generated[0]["from_npc_name"] == "Bea"

        pending = season.get("/game/proposals/amy").json()["proposals"]
        assert [p["id"] for p in pending] == [generated[0]["id"]]

        answer = season.post(f"/game/proposals/{pending[0]['id']}/respond", json={"accept": True})
        assert answer.status_code == 200
        assert answer.json()["deal"]["status"] == "active"
        # the new deal lifts amy-bea past 50, and bea follows up with a safety pact
        follow_up = season.get("/game/proposals/amy").json()["proposals"]
        assert [p["deal"]["type"] for p in follow_up] == ["safety_agreement"]
        assert season.get("/game/relationships/amy/bea").json()["score"] == 53

        again = season.post(f"/game/proposals/{pending[0]['id']}/respond", json={"accept": False})
        assert again.status_code == 400

    def test_unknown_proposal(self, season: TestClient) -> None:
        response = season.post("/game/proposals/nope/respond", json={"accept": True})
        assert response.status_code == 404

    def test_social_phase_offers_actions(self, season: TestClient) -> None:
        season.post("/game/relationships", json={"guest_a": "amy", "guest_b": "bea", "score": 45})
        data = season.post("/game/phase", json={"phase": "SocialInteraction"}).json()
        assert [a["name"] for a in data["actions"]] == ["respond_proposal"]
        assert data["actions"][0]["module"] == "deals"

    def test_obligations(self, season: TestClient) -> None:
        season.app.state.deal_service.create_deal(DealType.FINAL_TWO, "amy", "bea", week=1)
        data = season.get(
            "/game/obligations", params={"player_id": "amy", "phase": "FinalHoH"}
        ).json()
        assert data["phase"] == "FinalHoH"
        assert len(data["obligations"]) == 1
        assert data["obligations"][0]["severity"] == "critical"
        assert data["obligations"][0]["partner_name"] == "Bea"

        quiet = season.get("/game/obligations", params={"player_id": "amy"}).json()
        assert quiet["phase"] == "Setup"
        assert quiet["obligations"] == []


class TestCompetitions:
    def test_hoh(self, season: TestClient) -> None:
        response = season.post("/game/competitions", json={"comp_type": "HoH"})
        assert response.status_code == 200
        data = response.json()
        assert len(data["results"]) == 5
        roster = _roster(season)
        assert roster[data["winner_id"]]["is_hoh"] is True
        assert roster[data["winner_id"]]["hoh_wins"] == 1

    def test_subset_with_category(self, season: TestClient) -> None:
        data = season.post(
            "/game/competitions",
            json={"comp_type": "PoV", "participant_ids": ["bea", "cal"], "category": "Mental"},
        ).json()
        assert data["category"] == "Mental"
        assert {r["houseguest_id"] for r in data["results"]} == {"bea", "cal"}

    def test_errors(self, season: TestClient) -> None:
        assert season.post("/game/competitions", json={"comp_type": "Bake-off"}).status_code == 400
        response = season.post(
            "/game/competitions", json={"comp_type": "HoH", "participant_ids": ["nobody"]}
        )
        assert response.status_code == 400


class TestAIDecisions:
    def test_nominations_need_hoh(self, season: TestClient) -> None:
        response = season.post("/game/nominations/ai")
        assert response.status_code == 400
        assert "Head of Household" in response.json()["detail"]

    def test_nominations(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal"})
        data = season.post("/game/nominations/ai").json()
        assert data["nominator_id"] == "cal"
        assert len(data["nominee_ids"]) == 2
        assert "cal" not in data["nominee_ids"]
        roster = _roster(season)
        assert all(roster[hid]["is_nominated"] for hid in data["nominee_ids"])

    def test_votes(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        data = season.post("/game/votes/ai", json={}).json()
        # the HoH, the nominees and the player do not vote
        assert list(data["votes"]) == ["bea"]
        assert sum(data["tally"].values()) == 1

    def test_votes_without_nominees(self, season: TestClient) -> None:
        assert season.post("/game/votes/ai", json={}).status_code == 400

    def test_veto_fallback_then_replacement(self, season: TestClient) -> None:
        season.post(
            "/game/roles",
            json={"hoh_id": "cal", "pov_holder_id": "bea", "nominee_ids": ["dan", "eve"]},
        )
        season.post("/game/relationships", json={"guest_a": "bea", "guest_b": "dan", "score": 50})

        veto = season.post("/game/veto/ai").json()
        assert veto["source"] == "fallback"
        assert veto["used"] is True
        assert veto["save_id"] == "dan"

        replacement = season.post("/game/replacement/ai", json={"saved_id": "dan"}).json()
        # everyone else holds a role, so only the player is eligible
        assert replacement["nominee_id"] == "amy"
        roster = _roster(season)
        assert [hid for hid, h in roster.items() if h["is_nominated"]] == ["amy", "eve"]

    def test_veto_from_model(self, season: TestClient, mock_provider) -> None:
        season.post(
            "/game/roles",
            json={"hoh_id": "cal", "pov_holder_id": "bea", "nominee_ids": ["dan", "eve"]},
        )
        mock_provider.queue('{"use_veto": true, "save_id": "eve", "reason": "She is my ally"}')
        veto = season.post("/game/veto/ai").json()
        assert veto["source"] == "llm"
        assert veto["save_id"] == "eve"
        assert veto["reason"] == "She is my ally"

    def test_veto_without_holder(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        response = season.post("/game/veto/ai")
        assert response.status_code == 400
        assert "Power of Veto" in response.json()["detail"]


def _deal_status(client: TestClient, deal_id: str) -> str:
    return next(d["status"] for d in client.get("/game/deals").json() if d["id"] == deal_id)


class TestPlayerCeremonies:
    def test_player_nomination_breaks_safety_deal(self, season: TestClient) -> None:
        pact = season.app.state.deal_service.create_deal(
            DealType.SAFETY_AGREEMENT, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "amy"})
        before = season.get("/game/relationships/amy/bea").json()["score"]

        response = season.post("/game/nominations", json={"nominee_ids": ["bea", "cal"]})
        assert response.status_code == 200
        assert response.json() == {"nominator_id": "amy", "nominee_ids": ["bea", "cal"]}
        roster = _roster(season)
        assert roster["bea"]["is_nominated"] and roster["cal"]["is_nominated"]
        assert _deal_status(season, pact.id) == "broken"
        assert season.get("/game/relationships/amy/bea").json()["score"] < before

    def test_nominating_around_partner_keeps_deal(self, season: TestClient) -> None:
        pact = season.app.state.deal_service.create_deal(
            DealType.SAFETY_AGREEMENT, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "amy"})
        season.post("/game/nominations", json={"nominee_ids": ["cal", "dan"]})
        assert _deal_status(season, pact.id) == "active"

    def test_seeding_roles_resolves_nothing(self, season: TestClient) -> None:
        pact = season.app.state.deal_service.create_deal(
            DealType.SAFETY_AGREEMENT, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "amy", "nominee_ids": ["bea", "cal"]})
        assert _deal_status(season, pact.id) == "active"

    def test_nomination_errors(self, season: TestClient) -> None:
        no_hoh = season.post("/game/nominations", json={"nominee_ids": ["bea", "cal"]})
        assert no_hoh.status_code == 400
        assert "Head of Household" in no_hoh.json()["detail"]

        season.post("/game/roles", json={"hoh_id": "amy"})
        assert season.post("/game/nominations", json={"nominee_ids": ["amy", "cal"]}).status_code == 400
        assert season.post("/game/nominations", json={"nominee_ids": ["bea", "bea"]}).status_code == 400
        assert season.post("/game/nominations", json={"nominee_ids": ["bea", "zed"]}).status_code == 404

    def test_player_vote_against_partner_breaks_block(self, season: TestClient) -> None:
        block = season.app.state.deal_service.create_deal(
            DealType.VOTE_TOGETHER, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["bea", "dan"]})

        response = season.post("/game/votes", json={"voter_id": "amy", "evict_id": "bea"})
        assert response.status_code == 200
        assert response.json()["votes"] == {"amy": "bea"}
        assert _deal_status(season, block.id) == "broken"

    def test_player_votes_with_partner(self, season: TestClient) -> None:
        block = season.app.state.deal_service.create_deal(
            DealType.VOTE_TOGETHER, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        season.post("/game/votes", json={"voter_id": "amy", "evict_id": "dan"})
        assert _deal_status(season, block.id) == "active"
        season.post("/game/votes", json={"voter_id": "bea", "evict_id": "dan"})
        assert _deal_status(season, block.id) == "fulfilled"

    def test_vote_errors(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        off_block = season.post("/game/votes", json={"voter_id": "amy", "evict_id": "bea"})
        assert off_block.status_code == 400
        assert "not on the block" in off_block.json()["detail"]
        nominee = season.post("/game/votes", json={"voter_id": "dan", "evict_id": "eve"})
        assert nominee.status_code == 400
        assert season.post("/game/votes", json={"voter_id": "zed", "evict_id": "dan"}).status_code == 404

    def test_player_veto_saves_partner(self, season: TestClient) -> None:
        promise = season.app.state.deal_service.create_deal(
            DealType.VETO_USE, "bea", "amy", week=1
        )
        season.post(
            "/game/roles",
            json={"hoh_id": "cal", "pov_holder_id": "amy", "nominee_ids": ["bea", "dan"]},
        )
        response = season.post("/game/veto", json={"use_veto": True, "save_id": "bea"})
        assert response.status_code == 200
        assert response.json()["source"] == "player"
        assert _roster(season)["bea"]["is_nominated"] is False
        assert _deal_status(season, promise.id) == "fulfilled"

        replacement = season.post(
            "/game/replacement", json={"nominee_id": "eve", "saved_id": "bea"}
        )
        assert replacement.status_code == 200
        roster = _roster(season)
        assert [hid for hid, h in roster.items() if h["is_nominated"]] == ["dan", "eve"]

    def test_player_keeps_veto_on_partner(self, season: TestClient) -> None:
        promise = season.app.state.deal_service.create_deal(
            DealType.VETO_USE, "bea", "amy", week=1
        )
        season.post(
            "/game/roles",
            json={"hoh_id": "cal", "pov_holder_id": "amy", "nominee_ids": ["bea", "dan"]},
        )
        season.post("/game/veto", json={"use_veto": False})
        assert _deal_status(season, promise.id) == "broken"

    def test_veto_errors(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        assert season.post("/game/veto", json={"use_veto": False}).status_code == 400
        season.post("/game/roles", json={"pov_holder_id": "amy"})
        assert season.post("/game/veto", json={"use_veto": True}).status_code == 400
        assert season.post("/game/veto", json={"use_veto": True, "save_id": "zed"}).status_code == 404

    def test_finalist_choice_keeps_final_two(self, season: TestClient) -> None:
        final_two = season.app.state.deal_service.create_deal(
            DealType.FINAL_TWO, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "amy"})
        response = season.post("/game/finalists", json={"selected_id": "bea"})
        assert response.status_code == 200
        assert response.json() == {"selector_id": "amy", "selected_id": "bea"}
        assert _deal_status(season, final_two.id) == "fulfilled"

    def test_finalist_choice_breaks_final_two(self, season: TestClient) -> None:
        final_two = season.app.state.deal_service.create_deal(
            DealType.FINAL_TWO, "amy", "bea", week=1
        )
        season.post("/game/roles", json={"hoh_id": "amy"})
        season.post("/game/finalists", json={"selected_id": "cal"})
        assert _deal_status(season, final_two.id) == "broken"

    def test_finalist_errors(self, season: TestClient) -> None:
        assert season.post("/game/finalists", json={"selected_id": "bea"}).status_code == 400
        season.post("/game/roles", json={"hoh_id": "amy"})
        assert season.post("/game/finalists", json={"selected_id": "amy"}).status_code == 400
        assert season.post("/game/finalists", json={"selected_id": "zed"}).status_code == 404

    def test_evict(self, season: TestClient) -> None:
        season.post("/game/roles", json={"hoh_id": "cal", "nominee_ids": ["dan", "eve"]})
        response = season.post("/game/evict", json={"houseguest_id": "dan"})
        assert response.status_code == 200
        roster = _roster(season)
        assert roster["dan"]["status"] == "Evicted"
        assert roster["dan"]["is_nominated"] is False

        jury = season.post("/game/evict", json={"houseguest_id": "eve", "status": "Jury"})
        assert _roster(season)["eve"]["status"] == "Jury"
        assert jury.status_code == 200

    def test_evict_errors(self, season: TestClient) -> None:
        assert season.post("/game/evict", json={"houseguest_id": "zed"}).status_code == 404
        bad = season.post("/game/evict", json={"houseguest_id": "dan", "status": "Gone"})
        assert bad.status_code == 400

    def test_evicted_houseguest_cannot_be_nominated(self, season: TestClient) -> None:
        season.post("/game/evict", json={"houseguest_id": "dan"})
        season.post("/game/roles", json={"hoh_id": "amy"})
        response = season.post("/game/nominations", json={"nominee_ids": ["bea", "dan"]})
        assert response.status_code == 400
        assert "not an active houseguest" in response.json()["detail"]
