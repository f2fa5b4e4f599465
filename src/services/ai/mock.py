"""Mock provider for tests and for running without an API key."""

from collections import deque
from typing import Iterable, List, Optional

from src.services.ai.base import AIProvider

MOCK_TEXT_RESPONSE = "[Mock] The house is quiet tonight."


class MockProvider(AIProvider):
    """Replays scripted replies, then answers with an empty decision.

    An empty JSON object never parses into a valid decision, so with no
    script every caller ends up on its deterministic fallback.
    """

    def __init__(self, responses: Optional[Iterable[str]] = None) -> None:
        self._responses = deque(responses or [])
        self.prompts: List[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def is_available(self) -> bool:
        return True

    def queue(self, response: str) -> None:
        self._responses.append(response)

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        self.prompts.append(prompt)
        if self._responses:
            return self._responses.popleft()
        if json_mode or "JSON" in prompt or (system_prompt and "JSON" in system_prompt):
            return "{}"
        return MOCK_TEXT_RESPONSE
