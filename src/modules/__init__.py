"""Game module system"""

from src.modules.base import Action, GameContext, GameModule
from src.modules.module_manager import ModuleManager

__all__ = ["Action", "GameModule", "GameContext", "ModuleManager"]
