# hidden_meaning/api/deps.py
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer # Only used to read the "Bearer" header
from sqlalchemy.orm import Session

from hidden_meaning.core import security
from hidden_meaning.core.config import settings
from hidden_meaning.db.session import SessionLocal
from hidden_meaning.services import session_store
from hidden_meaning.services.game_session import GameSession
from hidden_meaning.services.hint_dispatcher import HintDispatcher
from hidden_meaning.services.image_generator import FalImageGenerator
from hidden_meaning.services.prompt_generator import MeaningPromptGenerator
from hidden_meaning.services.text_generator import GeminiTextGenerator

logger = logging.getLogger("hidden_meaning.api.deps")  # Logger for this module

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Tokens come from the hosted identity provider; tokenUrl is nominal.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token", auto_error=False)

async def get_optional_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """The identity provider's subject for signed-in players, None for signed-out ones."""
    if not token:
        return None
    payload = await security.verify_identity_token(token)
    user_id = payload.get("sub")
    if not user_id:
        logger.error("Identity token validation failed: 'sub' field missing.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Subject (sub) missing.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(user_id)

async def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id

# --- External collaborators, built once per process from settings ---

@lru_cache()
def get_text_generator() -> GeminiTextGenerator:
    return GeminiTextGenerator(
        api_key=settings.GEMINI_API_KEY,
        model_name=settings.GEMINI_MODEL_NAME,
        max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
    )

@lru_cache()
def get_image_generator() -> FalImageGenerator:
    return FalImageGenerator(
        api_key=settings.FAL_KEY,
        base_url=settings.FAL_BASE_URL,
        model_id=settings.FAL_MODEL_ID,
        aspect_ratio=settings.IMAGE_ASPECT_RATIO,
        output_format=settings.IMAGE_OUTPUT_FORMAT,
        safety_tolerance=settings.IMAGE_SAFETY_TOLERANCE,
        timeout_seconds=settings.IMAGE_REQUEST_TIMEOUT_SECONDS,
    )

def get_prompt_generator(text_generator: GeminiTextGenerator = Depends(get_text_generator)) -> MeaningPromptGenerator:
    return MeaningPromptGenerator(text_generator, max_output_tokens=settings.GEMINI_PROMPT_MAX_OUTPUT_TOKENS)

def get_hint_dispatcher(text_generator: GeminiTextGenerator = Depends(get_text_generator)) -> HintDispatcher:
    return HintDispatcher(text_generator)

def get_game_session(
    session_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
) -> GameSession:
    session = session_store.get_session(session_id, owner_id=user_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game session not found.")
    return session
