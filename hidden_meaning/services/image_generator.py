# hidden_meaning/services/image_generator.py
import logging
from typing import Any, Dict, Optional

import httpx

from hidden_meaning.core.exceptions import ImageGenerationError

logger = logging.getLogger("hidden_meaning.services.image_generator")  # Logger for this module


def extract_image_url(payload: Any) -> str:
    """Returns images[0].url from a fal response body, or raises ImageGenerationError."""
    try:
        url = payload["images"][0]["url"]
    except (KeyError, IndexError, TypeError):
        raise ImageGenerationError("No image URL in response")
    if not isinstance(url, str) or not url:
        raise ImageGenerationError("No image URL in response")
    return url


class FalImageGenerator:
    """
    Calls a fal.ai Flux model through the synchronous run endpoint
    (POST {base_url}/{model_id}) and returns the URL of the single image.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://fal.run",
        model_id: str = "fal-ai/flux-pro/v1.1-ultra",
        aspect_ratio: str = "3:4",
        output_format: str = "jpeg",
        safety_tolerance: str = "6",
        timeout_seconds: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.endpoint = f"{base_url.rstrip('/')}/{model_id}"
        self.aspect_ratio = aspect_ratio
        self.output_format = output_format
        self.safety_tolerance = safety_tolerance
        self.timeout_seconds = timeout_seconds
        self._client = client

    def build_request_body(self, image_prompt: str) -> Dict[str, Any]:
        return {
            "prompt": image_prompt,
            "num_images": 1,
            "enable_safety_checker": False,
            "safety_tolerance": self.safety_tolerance,
            "output_format": self.output_format,
            "aspect_ratio": self.aspect_ratio,
        }

    async def generate(self, image_prompt: str) -> str:
        headers = {"Authorization": f"Key {self.api_key}"}
        body = self.build_request_body(image_prompt)
        try:
            if self._client is not None:
                response = await self._client.post(self.endpoint, json=body, headers=headers, timeout=self.timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Image request to {self.endpoint} failed: {e}")
            raise ImageGenerationError(f"Image generation request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"Image generator responded {response.status_code}: {response.text[:200]}")
            raise ImageGenerationError(f"Image generation failed with status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ImageGenerationError("Image generator returned a non-JSON body") from e

        url = extract_image_url(payload)
        logger.info(f"Image generated: {url}")
        return url
