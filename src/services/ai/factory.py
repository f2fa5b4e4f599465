"""Factory for the configured decision-model provider."""

from typing import Optional

from src.config import settings
from src.core.logging import get_logger
from src.services.ai.base import AIProvider
from src.services.ai.gemini import DEFAULT_GEMINI_MODEL, GeminiProvider
from src.services.ai.mock import MockProvider

logger = get_logger(__name__)


def get_ai_provider(provider_name: Optional[str] = None) -> AIProvider:
    """Provider named by AI_PROVIDER (or the argument).

    Anything misconfigured degrades to MockProvider, which in turn sends
    every decision down the deterministic path.
    """
    name = provider_name or settings.AI_PROVIDER

    if name == "mock":
        logger.debug("Using MockProvider")
        return MockProvider()

    if name == "gemini":
        if not settings.AI_API_KEY:
            logger.warning("AI_API_KEY not set, falling back to MockProvider")
            return MockProvider()
        model = settings.AI_MODEL or DEFAULT_GEMINI_MODEL
        logger.debug("Using GeminiProvider with model: %s", model)
        return GeminiProvider(api_key=settings.AI_API_KEY, model=model)

    logger.warning("Unknown provider '%s', falling back to MockProvider", name)
    return MockProvider()
