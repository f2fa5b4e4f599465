"""모듈 관리자 - 등록, 활성화/비활성화, 의존성 검증, 페이즈 전파"""

from typing import Dict, List, Optional

from src.core.event_bus import EventBus
from src.core.game_state import GamePhase
from src.core.logging import get_logger
from src.modules.base import Action, GameContext, GameModule

logger = get_logger(__name__)


class ModuleManager:
    """모듈 토글 및 생명주기 관리"""

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._modules: Dict[str, GameModule] = {}
        self._event_bus: EventBus = event_bus or EventBus()

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def modules(self) -> Dict[str, GameModule]:
        return dict(self._modules)

    def get_enabled_modules(self) -> List[GameModule]:
        return [m for m in self._modules.values() if m.enabled]

    def register(self, module: GameModule) -> None:
        """모듈 등록. 같은 이름이 있으면 교체한다."""
        if module.name in self._modules:
            logger.warning(f"Replacing module: {module.name}")
        self._modules[module.name] = module
        logger.info(f"Module registered: {module.name}")

    def enable(self, name: str) -> bool:
        """모듈 활성화. 모듈이나 의존 모듈이 없거나 비활성이면 False"""
        module = self._modules.get(name)
        if not module:
            logger.error(f"Module not registered: {name}")
            return False

        if module.enabled:
            logger.debug(f"Already enabled: {name}")
            return True

        for dep in module.dependencies:
            dep_module = self._modules.get(dep)
            if not dep_module:
                logger.warning(f"Missing dependency: {name} requires {dep}")
                return False
            if not dep_module.enabled:
                logger.warning(f"Dependency disabled: {name} requires {dep}")
                return False

        module.on_enable()
        module.enabled = True
        logger.info(f"Module enabled: {name}")
        return True

    def disable(self, name: str) -> bool:
        """모듈 비활성화. 이 모듈에 의존하는 모듈도 연쇄 비활성화한다.

        Returns:
            비활성화됨(또는 이미 비활성) True, 미등록 False
        """
        module = self._modules.get(name)
        if not module:
            logger.error(f"Module not registered: {name}")
            return False

        if not module.enabled:
            logger.debug(f"Already disabled: {name}")
            return True

        for other in self._modules.values():
            if name in other.dependencies and other.enabled:
                logger.info(f"Cascade disable: {other.name} (depends on {name})")
                self.disable(other.name)

        module.on_disable()
        module.enabled = False
        logger.info(f"Module disabled: {name}")
        return True

    def process_phase(self, context: GameContext) -> None:
        """활성 모듈의 on_turn 실행 후 이벤트 체인을 닫는다."""
        for module in self._modules.values():
            if module.enabled:
                module.on_turn(context)
        self._event_bus.reset_chain()

    def process_phase_enter(self, phase: GamePhase, context: GameContext) -> None:
        for module in self._modules.values():
            if module.enabled:
                module.on_phase_enter(phase, context)

    def get_all_actions(self, context: GameContext) -> List[Action]:
        actions: List[Action] = []
        for module in self._modules.values():
            if module.enabled:
                actions.extend(module.get_available_actions(context))
        return actions

    def is_enabled(self, name: str) -> bool:
        module = self._modules.get(name)
        return module.enabled if module else False
