# hidden_meaning/services/text_generator.py
import logging
import time
from typing import Any, Dict, Optional

import google.generativeai as genai

from hidden_meaning.core.exceptions import TextGenerationError

logger = logging.getLogger("hidden_meaning.services.text_generator")  # Logger for this module

PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY_HERE"


class GeminiTextGenerator:
    """
    Thin async wrapper around a Gemini model.

    Configuration is handed in by whoever builds the client (see api/deps.py);
    nothing here reads settings on its own.
    """

    def __init__(self, api_key: str, model_name: str, max_output_tokens: int = 1024):
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self._model: Optional[genai.GenerativeModel] = None

        if not api_key or api_key == PLACEHOLDER_API_KEY:
            logger.error("GEMINI_API_KEY is not configured. Text generation is disabled.")
            return
        # google-generativeai keeps the key on its default client; this is the only place it is set.
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name)

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    async def generate_text(self, prompt: str, max_output_tokens: Optional[int] = None) -> str:
        """Returns the model's free-text answer. Raises TextGenerationError on any failure."""
        return await self._generate(prompt, {"max_output_tokens": max_output_tokens or self.max_output_tokens})

    async def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """Asks for a JSON answer matching `response_schema`. Returns the raw text; parsing is up to the caller."""
        generation_config = {
            "response_mime_type": "application/json",
            "response_schema": response_schema,
            "max_output_tokens": max_output_tokens or self.max_output_tokens,
        }
        return await self._generate(prompt, generation_config)

    async def _generate(self, prompt: str, generation_config: Dict[str, Any]) -> str:
        if self._model is None:
            raise TextGenerationError("Gemini API key not configured", retryable=False)

        start = time.perf_counter()
        try:
            response = await self._model.generate_content_async(prompt, generation_config=generation_config)
            text = response.text  # Raises ValueError when the candidate has no text part (e.g. blocked)
        except Exception as e:
            logger.warning(f"Gemini call failed ({self.model_name}): {e}")
            raise TextGenerationError(f"Gemini processing error: {e}") from e

        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(f"Gemini answered in {latency_ms} ms", extra={"gemini_latency_ms": latency_ms})

        if not isinstance(text, str):
            raise TextGenerationError(f"Gemini returned a non-text payload ({type(text).__name__})")
        return text
