"""EventBus - 모듈/서비스 간 동기 이벤트 통신 인프라

규칙:
- 서비스/모듈은 다른 서비스/모듈을 직접 import하지 않는다
- 이벤트는 식별자와 작은 값만 전달한다
- 전파 깊이 최대 MAX_DEPTH 단계
- 같은 체인 안에서 동일 원인의 동일 이벤트 중복 발행 금지
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 페이즈 내 이벤트 전파 최대 깊이


@dataclass
class GameEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (예: "deal_fulfilled", "competition_completed")
        data: 이벤트 데이터 (ID와 단순 값 위주, ORM 객체 금지)
        source: 발행한 서비스/모듈 이름
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    # 내부 추적용, 호출자가 설정하지 않음
    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """동기 이벤트 버스

    사용법:
        bus = EventBus()
        bus.subscribe("deal_broken", relationship_module.handle_deal_outcome)
        bus.emit(GameEvent(event_type="deal_broken", data={"deal_id": "d1"}, source="deal_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._current_depth: int = 0
        self._emitted_in_chain: Set[str] = set()  # "source:event_type:key"

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug(f"EventBus subscribe: {event_type} -> {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(
                    f"EventBus unsubscribe: {event_type} -> {handler.__qualname__}"
                )
            except ValueError:
                logger.warning(
                    f"Handler not registered: {event_type} -> {handler.__qualname__}"
                )

    def emit(self, event: GameEvent) -> None:
        """이벤트 발행. 구독 핸들러를 동기적으로 호출한다.

        안전장치:
        1. MAX_DEPTH 초과 시 발행 무시
        2. 같은 체인에서 source/event_type/dedup 키가 반복되면 무시

        서로 다른 대상에 대한 이벤트(예: 다른 두 거래)는
        payload의 선택적 ``dedup_key`` 로 구분한다.
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus depth exceeded ({MAX_DEPTH}): "
                f"{event.source}:{event.event_type} dropped"
            )
            return

        chain_key = f"{event.source}:{event.event_type}:{event.data.get('dedup_key', '')}"
        if chain_key in self._emitted_in_chain:
            logger.warning(f"EventBus duplicate blocked: {chain_key}")
            return

        self._emitted_in_chain.add(chain_key)
        event._depth = self._current_depth

        handlers = self._handlers.get(event.event_type, [])
        if not handlers:
            logger.debug(f"EventBus: no subscribers for {event.event_type}")
            return

        logger.info(
            f"EventBus deliver: {event.event_type} (source={event.source}, "
            f"depth={self._current_depth}, handlers={len(handlers)})"
        )

        self._current_depth += 1
        try:
            for handler in list(handlers):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus handler error: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            self._current_depth -= 1

    def reset_chain(self) -> None:
        """페이즈 종료 시 호출. 중복 추적 초기화."""
        self._emitted_in_chain.clear()
        self._current_depth = 0

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
