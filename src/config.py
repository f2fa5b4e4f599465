"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # AI Provider settings
    AI_PROVIDER: str = "mock"
    AI_API_KEY: Optional[str] = None
    AI_MODEL: Optional[str] = None

    # NPC decision weights (normalised per houseguest after trait nudges)
    NPC_THREAT_WEIGHT: float = 0.25
    NPC_LOYALTY_WEIGHT: float = 0.2
    NPC_RELATIONSHIP_WEIGHT: float = 0.3
    NPC_PROMISE_WEIGHT: float = 0.15
    NPC_PERSONALITY_WEIGHT: float = 0.1

    # Decisions
    VETO_USE_THRESHOLD: float = 30.0

    # Deals
    MAX_PROPOSALS_PER_PHASE: int = 3
    BETRAYAL_SPREAD_CHANCE: float = 0.4

    # Interaction memory
    MEMORY_RETENTION_WEEKS: int = 3
    RELATIONSHIP_DECAY_RATE: float = 0.1


settings = Settings()
