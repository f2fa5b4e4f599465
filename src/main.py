"""FastAPI application entrypoint."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from sqlalchemy.orm import Session

from src.api.game import router as game_router
from src.api.health import router as health_router
from src.config import settings
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.db.database import SessionLocal, init_db
from src.engine.decision_scheduler import DecisionScheduler, GameSession
from src.modules.deal.module import DealModule
from src.modules.module_manager import ModuleManager
from src.modules.relationship.module import RelationshipModule
from src.services.ai import AIProvider, get_ai_provider
from src.services.ai_decision_service import AIDecisionService
from src.services.competition_service import CompetitionService
from src.services.deal_service import DealService
from src.services.decision_service import DecisionService
from src.services.game_state_service import GameStateService
from src.services.relationship_service import RelationshipService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def wire_services(
    app: FastAPI,
    db_session: Session,
    event_bus: Optional[EventBus] = None,
    ai_provider: Optional[AIProvider] = None,
    rng: Optional[random.Random] = None,
) -> ModuleManager:
    """Build services and modules on one session/bus and hang them on app.state."""
    event_bus = event_bus or EventBus()
    ai_provider = ai_provider or get_ai_provider()
    logger.info(f"AI provider initialized: {ai_provider.name}")

    game_state_service = GameStateService(db_session, event_bus)
    decision_service = DecisionService(db_session, event_bus)

    app.state.event_bus = event_bus
    app.state.game_state_service = game_state_service
    app.state.relationship_service = RelationshipService(db_session, event_bus)
    app.state.deal_service = DealService(db_session, event_bus, rng=rng)
    app.state.competition_service = CompetitionService(db_session, event_bus, rng=rng)
    app.state.decision_service = decision_service
    app.state.ai_decision_service = AIDecisionService(ai_provider, decision_service)

    # modules subscribe before anything can emit
    module_manager = ModuleManager(event_bus)
    module_manager.register(RelationshipModule(db_session, event_bus))
    module_manager.register(DealModule(db_session, event_bus, rng=rng))
    module_manager.enable("relationship")
    module_manager.enable("deals")
    app.state.module_manager = module_manager

    scheduler = DecisionScheduler(event_bus, phase=game_state_service.get_phase())
    app.state.game_session = GameSession(scheduler)
    logger.info("Services and modules wired.")
    return module_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    init_db()
    logger.info("Database tables created.")

    db_session = SessionLocal()
    module_manager = wire_services(app, db_session)

    yield

    logger.info("Shutting down...")
    for module in module_manager.get_enabled_modules():
        module_manager.disable(module.name)
    app.state.game_session.scheduler.close()
    db_session.close()


app = FastAPI(title="Big Brother Decision Engine", lifespan=lifespan)

app.include_router(health_router)
app.include_router(game_router)
