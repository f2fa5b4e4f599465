"""DecisionScheduler - pending AI decisions tied to the phase they belong to.

engine component. AI houseguests "think" before acting; their decisions
are queued here with the phase token current at scheduling time. When the
phase moves on (phase_changed event, fast-forward) the token is bumped and
anything still queued for the old token is discarded instead of mutating
state after the fact.

GameSession serialises every state write behind one lock so decision
calls from different threads never race on the same relationship or deal.
"""

import itertools
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_state import GamePhase
from src.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class PendingDecision:
    decision_id: str
    label: str
    phase: GamePhase
    phase_token: int
    fn: Callable[[], Any]


@dataclass
class DecisionResult:
    decision_id: str
    label: str
    phase: GamePhase
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DecisionScheduler:
    """Phase-tokened queue of AI decisions"""

    def __init__(
        self,
        event_bus: EventBus | None = None,
        phase: GamePhase = GamePhase.SETUP,
    ) -> None:
        self._bus = event_bus
        self._phase = phase
        self._token = 0
        self._pending: list[PendingDecision] = []
        self._ids = itertools.count(1)
        if event_bus is not None:
            event_bus.subscribe(EventTypes.PHASE_CHANGED, self._on_phase_changed)

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def phase_token(self) -> int:
        return self._token

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def pending_labels(self) -> list[str]:
        return [p.label for p in self._pending]

    def schedule(self, label: str, fn: Callable[[], Any]) -> str:
        """Queue a decision for the current phase. Returns its id."""
        decision_id = f"decision-{next(self._ids)}"
        self._pending.append(
            PendingDecision(
                decision_id=decision_id,
                label=label,
                phase=self._phase,
                phase_token=self._token,
                fn=fn,
            )
        )
        logger.debug(f"Scheduled {label} ({decision_id}) for {self._phase.value}")
        return decision_id

    def cancel(self, decision_id: str) -> bool:
        for pending in self._pending:
            if pending.decision_id == decision_id:
                self._pending.remove(pending)
                return True
        return False

    def cancel_phase(self) -> int:
        """Drop every pending decision and invalidate the current token."""
        dropped = len(self._pending)
        self._pending.clear()
        self._token += 1
        if dropped:
            logger.info(f"Cancelled {dropped} pending decisions ({self._phase.value})")
        return dropped

    def advance_phase(self, new_phase: GamePhase) -> int:
        """Move to new_phase, discarding decisions scheduled for the old one."""
        dropped = self.cancel_phase()
        old = self._phase
        self._phase = new_phase
        logger.info(f"Scheduler phase {old.value} -> {new_phase.value}")
        return dropped

    def run_due(self) -> list[DecisionResult]:
        """Run queued decisions for the current phase, in scheduling order.

        A decision that changes the phase cancels everything behind it.
        """
        results: list[DecisionResult] = []
        token = self._token
        due, self._pending = self._pending, []
        for pending in due:
            if pending.phase_token != token or self._token != token:
                logger.debug(f"Discarding stale decision {pending.label}")
                continue
            try:
                value = pending.fn()
            except ValueError as exc:
                logger.warning(f"Decision {pending.label} rejected: {exc}")
                results.append(
                    DecisionResult(pending.decision_id, pending.label, pending.phase, error=str(exc))
                )
                continue
            results.append(
                DecisionResult(pending.decision_id, pending.label, pending.phase, value=value)
            )
        return results

    def close(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(EventTypes.PHASE_CHANGED, self._on_phase_changed)
            self._bus = None

    def _on_phase_changed(self, event: GameEvent) -> None:
        new_phase = event.data.get("new_phase")
        if new_phase is None:
            return
        self.advance_phase(GamePhase(new_phase))


class GameSession:
    """Single-writer wrapper: every state mutation goes through one lock.

    The lock is re-entrant so a scheduled decision may call apply() while
    run_due() already holds it.
    """

    def __init__(self, scheduler: DecisionScheduler | None = None) -> None:
        self.scheduler = scheduler or DecisionScheduler()
        self._lock = threading.RLock()

    @contextmanager
    def writer(self) -> Iterator[None]:
        with self._lock:
            yield

    def apply(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self._lock:
            return fn(*args, **kwargs)

    def schedule(self, label: str, fn: Callable[[], Any]) -> str:
        with self._lock:
            return self.scheduler.schedule(label, fn)

    def run_due(self) -> list[DecisionResult]:
        with self._lock:
            return self.scheduler.run_due()

    def advance_phase(self, new_phase: GamePhase) -> int:
        with self._lock:
            return self.scheduler.advance_phase(new_phase)
