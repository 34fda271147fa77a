# hidden_meaning/core/config.py
import pathlib
import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

logger = logging.getLogger("hidden_meaning.core.config")  # Logger for this module

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    PROJECT_NAME: str = "Hidden Meaning Backend"
    API_V1_STR: str = "/api/v1"
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'hidden_meaning.db'}"
    LOGS_DIR: pathlib.Path = BASE_DIR / "logs"

    # Please set your Gemini API Key in the .env file
    GEMINI_API_KEY: str = "YOUR_GEMINI_API_KEY_HERE"
    GEMINI_MODEL_NAME: str = "gemini-1.5-flash-latest"
    GEMINI_MAX_OUTPUT_TOKENS: int = 1024  # Hints and explanations
    GEMINI_PROMPT_MAX_OUTPUT_TOKENS: int = 8192  # Image prompt + hidden meaning generation

    # fal.ai image generation (Flux)
    FAL_KEY: str = "YOUR_FAL_KEY_HERE"
    FAL_BASE_URL: str = "https://fal.run"
    FAL_MODEL_ID: str = "fal-ai/flux-pro/v1.1-ultra"
    IMAGE_ASPECT_RATIO: str = "3:4"
    IMAGE_OUTPUT_FORMAT: str = "jpeg"
    IMAGE_SAFETY_TOLERANCE: str = "6"
    IMAGE_REQUEST_TIMEOUT_SECONDS: float = 120.0  # Flux ultra can take a while

    DAILY_PLAY_LIMIT: int = 9
    # When False, signed-out players cannot start rounds. When True they play unmetered.
    ALLOW_ANONYMOUS_PLAY: bool = False

    # Tokens issued by the hosted identity provider
    JWT_SECRET_KEY: str = "your-super-secret-and-long-random-string-for-jwt-CHANGE-THIS-IMMEDIATELY"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache()
def get_settings():
    settings_instance = Settings()
    settings_instance.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Logs directory set to: {settings_instance.LOGS_DIR}")
    return settings_instance

settings = get_settings()
