"""모듈 기반 인터페이스"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.core.game_state import GamePhase


@dataclass
class GameContext:
    """페이즈마다 모듈에 전달되는 시즌 상태 컨텍스트"""

    week: int
    phase: GamePhase
    player_id: Optional[str] = None
    db_session: Optional[Session] = None

    # 모듈이 추가 데이터를 넣을 수 있는 확장 슬롯
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """모듈이 플레이어에게 제공하는 행동"""

    name: str  # 액션 식별자 (예: "respond_proposal")
    display_name: str  # 표시 이름 (예: "Answer Bea: Partnership")
    module_name: str  # 제공한 모듈 이름
    description: str = ""
    params: Dict[str, Any] = field(default_factory=dict)  # 추가 파라미터


class GameModule(ABC):
    """모든 게임 모듈의 기반 인터페이스

    규칙:
    - 모듈은 다른 모듈을 직접 import하지 않는다
    - 모듈 간 통신은 EventBus를 통해서만 한다
    - Module -> Service, Module -> Core, Module -> DB 는 허용
    """

    _enabled: bool

    def __init__(self) -> None:
        self._enabled = False

    @property
    @abstractmethod
    def name(self) -> str:
        """모듈 고유 이름 (예: 'relationship', 'deals')"""
        ...

    @property
    def dependencies(self) -> List[str]:
        """먼저 활성화되어 있어야 하는 모듈 이름 목록"""
        return []

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    @abstractmethod
    def on_enable(self) -> None:
        """활성화 시 호출. 서비스 생성, 이벤트 구독."""
        ...

    @abstractmethod
    def on_disable(self) -> None:
        """비활성화 시 호출. 구독 해제, 서비스 해제."""
        ...

    @abstractmethod
    def on_turn(self, context: GameContext) -> None:
        """게임 페이즈마다 한 번 호출"""
        ...

    def on_phase_enter(self, phase: GamePhase, context: GameContext) -> None:
        """시즌이 새 페이즈에 들어갈 때 호출"""
        return None

    def get_available_actions(self, context: GameContext) -> List[Action]:
        """현재 이 모듈이 제공하는 플레이어 행동"""
        return []
