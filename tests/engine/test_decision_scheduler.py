"""DecisionScheduler / GameSession: phase-tokened AI decisions"""

import threading

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.engine.decision_scheduler import DecisionScheduler, GameSession


def _phase_changed(new_phase: GamePhase, week: int = 1) -> GameEvent:
    return GameEvent(
        event_type=EventTypes.PHASE_CHANGED,
        data={"new_phase": new_phase.value, "week": week, "dedup_key": f"{week}:{new_phase.value}"},
        source="game_state_service",
    )


class TestSchedule:
    def test_runs_in_order(self):
        scheduler = DecisionScheduler(phase=GamePhase.NOMINATION)
        calls = []
        scheduler.schedule("first", lambda: calls.append(1) or "a")
        scheduler.schedule("second", lambda: calls.append(2) or "b")
        results = scheduler.run_due()
        assert calls == [1, 2]
        assert [r.value for r in results] == ["a", "b"]
        assert all(r.ok for r in results)
        assert all(r.phase == GamePhase.NOMINATION for r in results)
        assert scheduler.pending_count == 0

    def test_ids_are_unique(self):
        scheduler = DecisionScheduler()
        first = scheduler.schedule("a", lambda: None)
        second = scheduler.schedule("b", lambda: None)
        assert first != second
        assert scheduler.pending_labels() == ["a", "b"]

    def test_cancel(self):
        scheduler = DecisionScheduler()
        decision_id = scheduler.schedule("a", lambda: None)
        assert scheduler.cancel(decision_id) is True
        assert scheduler.cancel(decision_id) is False
        assert scheduler.run_due() == []

    def test_value_error_becomes_result(self):
        scheduler = DecisionScheduler()

        def reject():
            raise ValueError("There is no Head of Household")

        scheduler.schedule("nominations", reject)
        results = scheduler.run_due()
        assert results[0].ok is False
        assert results[0].error == "There is no Head of Household"

    def test_scheduled_during_run_waits_for_next_run(self):
        scheduler = DecisionScheduler()
        calls = []

        def first():
            calls.append("first")
            scheduler.schedule("follow-up", lambda: calls.append("follow-up"))

        scheduler.schedule("first", first)
        scheduler.run_due()
        assert calls == ["first"]
        assert scheduler.pending_count == 1
        scheduler.run_due()
        assert calls == ["first", "follow-up"]


class TestPhaseCancellation:
    def test_advance_drops_pending(self):
        scheduler = DecisionScheduler(phase=GamePhase.POV)
        scheduler.schedule("veto", lambda: "used")
        dropped = scheduler.advance_phase(GamePhase.POV_MEETING)
        assert dropped == 1
        assert scheduler.phase == GamePhase.POV_MEETING
        assert scheduler.run_due() == []

    def test_token_bumps(self):
        scheduler = DecisionScheduler()
        token = scheduler.phase_token
        scheduler.advance_phase(GamePhase.HOH)
        assert scheduler.phase_token == token + 1

    def test_phase_changed_event(self):
        bus = EventBus()
        scheduler = DecisionScheduler(bus, phase=GamePhase.NOMINATION)
        scheduler.schedule("nominations", lambda: "done")
        bus.emit(_phase_changed(GamePhase.POV))
        assert scheduler.phase == GamePhase.POV
        assert scheduler.pending_count == 0

    def test_decision_that_changes_phase_cancels_the_rest(self):
        scheduler = DecisionScheduler(phase=GamePhase.EVICTION)
        calls = []
        scheduler.schedule("evict", lambda: scheduler.advance_phase(GamePhase.HOH))
        scheduler.schedule("late vote", lambda: calls.append("late"))
        results = scheduler.run_due()
        assert calls == []
        assert [r.label for r in results] == ["evict"]

    def test_close_unsubscribes(self):
        bus = EventBus()
        scheduler = DecisionScheduler(bus)
        scheduler.close()
        bus.emit(_phase_changed(GamePhase.HOH))
        assert scheduler.phase == GamePhase.SETUP


class TestGameSession:
    def test_apply(self):
        session = GameSession()
        assert session.apply(lambda a, b=0: a + b, 2, b=3) == 5

    def test_reentrant_writer(self):
        session = GameSession()
        with session.writer():
            session.schedule("inner", lambda: session.apply(lambda: "nested"))
            results = session.run_due()
        assert results[0].value == "nested"

    def test_serialises_writers(self):
        session = GameSession()
        counter = {"value": 0}

        def bump():
            for _ in range(1000):
                session.apply(lambda: counter.__setitem__("value", counter["value"] + 1))

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["value"] == 4000

    def test_advance_phase(self):
        session = GameSession(DecisionScheduler(phase=GamePhase.HOH))
        session.schedule("hoh", lambda: None)
        assert session.advance_phase(GamePhase.NOMINATION) == 1
        assert session.scheduler.phase == GamePhase.NOMINATION
