# hidden_meaning/services/prompt_generator.py
import json
import logging
import re
from typing import Protocol

from hidden_meaning.core.exceptions import GenerationError, TextGenerationError
from hidden_meaning.models.game import GeneratedPrompt, Language
from hidden_meaning.services.languages import get_profile

logger = logging.getLogger("hidden_meaning.services.prompt_generator")  # Logger for this module

GEMINI_PROMPT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "imagePrompt": {"type": "STRING", "description": "The prompt sent to the image generator."},
        "hiddenMeaning": {"type": "STRING", "description": "The word or short phrase the image secretly encodes."}
    },
    "required": ["imagePrompt", "hiddenMeaning"]
}

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*|\s*```")


class JsonTextGenerator(Protocol):
    async def generate_json(self, prompt: str, response_schema: dict, max_output_tokens: int | None = None) -> str: ...


def parse_generated_prompt(raw_text: str) -> GeneratedPrompt:
    """
    Turns the model's answer into a GeneratedPrompt.
    Raises GenerationError if it is not a JSON object with two non-empty string fields.
    """
    cleaned = _CODE_FENCE_RE.sub("", raw_text or "").strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Prompt generator returned invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise GenerationError("Prompt generator returned JSON that is not an object")

    image_prompt = payload.get("imagePrompt")
    hidden_meaning = payload.get("hiddenMeaning")
    if not isinstance(image_prompt, str) or not image_prompt.strip():
        raise GenerationError("Prompt generator response is missing 'imagePrompt'")
    if not isinstance(hidden_meaning, str) or not hidden_meaning.strip():
        raise GenerationError("Prompt generator response is missing 'hiddenMeaning'")

    return GeneratedPrompt(image_prompt=image_prompt.strip(), hidden_meaning=hidden_meaning.strip())


class MeaningPromptGenerator:
    """Asks the LLM for an image prompt and the hidden meaning it encodes."""

    def __init__(self, text_generator: JsonTextGenerator, max_output_tokens: int = 8192):
        self.text_generator = text_generator
        self.max_output_tokens = max_output_tokens

    async def generate(self, language: Language) -> GeneratedPrompt:
        profile = get_profile(language)
        try:
            raw_text = await self.text_generator.generate_json(
                profile.generation_prompt,
                response_schema=GEMINI_PROMPT_SCHEMA,
                max_output_tokens=self.max_output_tokens,
            )
        except TextGenerationError as e:
            raise GenerationError(f"Failed to generate a valid prompt: {e.message}", retryable=e.retryable) from e

        logger.debug(f"Raw prompt generator response: {raw_text!r}")
        generated = parse_generated_prompt(raw_text)
        logger.info(f"Generated prompt for language {profile.language.value}: '{generated.image_prompt[:80]}'")
        return generated
