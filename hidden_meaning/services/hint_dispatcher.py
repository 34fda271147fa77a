# hidden_meaning/services/hint_dispatcher.py
import logging
from typing import Optional, Protocol

from hidden_meaning.models.game import Language
from hidden_meaning.services.languages import EXPLANATION_FALLBACK, get_profile

logger = logging.getLogger("hidden_meaning.services.hint_dispatcher")  # Logger for this module


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str, max_output_tokens: int | None = None) -> str: ...


class HintDispatcher:
    """
    Builds hint and explanation requests and returns the generated prose.
    Never raises: any failure becomes a fixed fallback string.
    """

    def __init__(self, text_generator: TextGenerator):
        self.text_generator = text_generator

    async def request_hint(self, hidden_meaning: str, guess: str, language: Language) -> str:
        profile = get_profile(language)
        prompt = profile.build_hint_prompt(hidden_meaning, guess)
        return await self._generate(prompt, fallback=profile.hint_failure_message, purpose="hint")

    async def request_explanation(self, hidden_meaning: str, image_prompt: Optional[str], language: Language) -> str:
        if not image_prompt:
            return EXPLANATION_FALLBACK
        profile = get_profile(language)
        prompt = profile.build_explanation_prompt(hidden_meaning, image_prompt)
        return await self._generate(prompt, fallback=EXPLANATION_FALLBACK, purpose="explanation")

    async def _generate(self, prompt: str, fallback: str, purpose: str) -> str:
        try:
            text = await self.text_generator.generate_text(prompt)
        except Exception as e:
            logger.warning(f"Error getting {purpose}: {e}")
            return fallback

        if not isinstance(text, str) or not text.strip():
            logger.warning(f"Text generator returned an empty or non-text {purpose} ({type(text).__name__}).")
            return fallback
        return text.strip()
