"""Abstract base class for decision-model providers."""

from abc import ABC, abstractmethod
from typing import Optional


class AIProvider(ABC):
    """A text model that houseguest decisions can be delegated to.

    Providers only produce text. Parsing and validating the decision is
    the caller's job, and any provider error is expected to surface as an
    exception so the caller can fall back to the scorer.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured and can be called."""
        ...

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        """Generate a reply to the prompt.

        Args:
            prompt: The decision prompt.
            system_prompt: Optional role/instruction prompt.
            max_tokens: Maximum tokens for the reply.
            json_mode: Ask the model for a bare JSON object.

        Returns:
            The raw reply text.
        """
        ...
