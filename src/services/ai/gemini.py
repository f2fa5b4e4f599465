"""Gemini provider implementation."""

from typing import Optional

import google.generativeai as genai

from src.core.logging import get_logger
from src.services.ai.base import AIProvider

logger = get_logger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class GeminiProvider(AIProvider):
    """Provider backed by the Google Gemini API."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL) -> None:
        self._api_key = api_key
        self._model_name = model
        self._model = None

        if self._api_key:
            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self._model_name)
            logger.info("GeminiProvider initialized with model: %s", self._model_name)

    @property
    def name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return bool(self._api_key) and self._model is not None

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        """Call Gemini and return the stripped reply text.

        Raises:
            RuntimeError: If the provider is not configured or the call fails.
        """
        if not self.is_available():
            raise RuntimeError("GeminiProvider is not available. Check API key.")

        model = self._model
        if system_prompt:
            model = genai.GenerativeModel(
                self._model_name,
                system_instruction=system_prompt,
            )

        generation_config = genai.types.GenerationConfig(
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_mode else "text/plain",
        )

        try:
            response = model.generate_content(prompt, generation_config=generation_config)
            return response.text.strip()
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise RuntimeError(f"Gemini API error: {e}") from e
