# hidden_meaning/services/round_service.py
import logging
from enum import Enum
from typing import Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hidden_meaning.core.exceptions import CollaboratorError
from hidden_meaning.crud import crud_play
from hidden_meaning.models.game import GeneratedPrompt, Language
from hidden_meaning.services.game_session import GameSession

logger = logging.getLogger("hidden_meaning.services.round_service")  # Logger for this module

LIMIT_REACHED_MESSAGE = "Daily limit reached. You can play {limit} rounds per day. Come back tomorrow!"
SIGN_IN_REQUIRED_MESSAGE = "Please sign in to play."
GENERATION_BUSY_MESSAGE = "An image is already being generated. Please wait."
GENERATION_FAILED_MESSAGE = "Failed to generate image. Please try again."


class PromptGenerator(Protocol):
    async def generate(self, language: Language) -> GeneratedPrompt: ...


class ImageGenerator(Protocol):
    async def generate(self, image_prompt: str) -> str: ...


class RoundStartStatus(str, Enum):
    STARTED = "started"
    LIMIT_REACHED = "limit_reached"
    SIGN_IN_REQUIRED = "sign_in_required"
    BUSY = "busy"
    GENERATION_FAILED = "generation_failed"


class RoundStartResult:
    def __init__(self, status: RoundStartStatus, message: str | None = None, plays_today: int | None = None):
        self.status = status
        self.message = message
        self.plays_today = plays_today

    @property
    def started(self) -> bool:
        return self.status == RoundStartStatus.STARTED


# Round starts still generating, per user. They count toward the daily limit
# until their play is recorded or the attempt is abandoned.
pending_plays: Dict[str, int] = {}


def _reserve_play(user_id: str) -> None:
    pending_plays[user_id] = pending_plays.get(user_id, 0) + 1


def _release_play(user_id: str) -> None:
    remaining = pending_plays.get(user_id, 0) - 1
    if remaining > 0:
        pending_plays[user_id] = remaining
    else:
        pending_plays.pop(user_id, None)


def check_quota(db: Session, user_id: str, daily_limit: int) -> tuple[bool, int]:
    """
    Returns (allowed, plays_today) for this user. Rounds still being generated
    count as played. Callers must reserve before their next await.
    """
    plays_today = crud_play.count_plays_today(db, user_id) + pending_plays.get(user_id, 0)
    return plays_today < daily_limit, plays_today


async def start_new_round(
    session: GameSession,
    language: Language,
    user_id: Optional[str],
    db: Session,
    prompt_generator: PromptGenerator,
    image_generator: ImageGenerator,
    daily_limit: int,
    allow_anonymous: bool = False,
) -> RoundStartResult:
    """
    Guards, generates and starts a new round for `session`.

    Nothing about the session changes unless both generators succeed, so a
    failed attempt leaves the previous round playable.
    """
    if session.is_generating:
        return RoundStartResult(RoundStartStatus.BUSY, GENERATION_BUSY_MESSAGE)

    plays_today = None
    if user_id is None:
        if not allow_anonymous:
            return RoundStartResult(RoundStartStatus.SIGN_IN_REQUIRED, SIGN_IN_REQUIRED_MESSAGE)
        logger.info(f"S:{session.session_id} - Anonymous round start; quota not enforced.")
    else:
        allowed, plays_today = check_quota(db, user_id, daily_limit)
        if not allowed:
            logger.info(f"User {user_id} reached the daily limit ({plays_today}/{daily_limit}).")
            return RoundStartResult(
                RoundStartStatus.LIMIT_REACHED,
                LIMIT_REACHED_MESSAGE.format(limit=daily_limit),
                plays_today=plays_today,
            )

    session.is_generating = True
    if user_id is not None:
        _reserve_play(user_id)
    try:
        try:
            generated = await prompt_generator.generate(language)
            image_url = await image_generator.generate(generated.image_prompt)
        except CollaboratorError as e:
            logger.warning(f"S:{session.session_id} - Round generation failed: {e.message}")
            return RoundStartResult(RoundStartStatus.GENERATION_FAILED, GENERATION_FAILED_MESSAGE, plays_today=plays_today)
        finally:
            session.is_generating = False

        if user_id is not None:
            try:
                crud_play.record_play(
                    db,
                    user_id=user_id,
                    image_url=image_url,
                    hidden_meaning=generated.hidden_meaning,
                    language=Language(language).value,
                )
                plays_today += 1
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to record play for user {user_id}: {e}", exc_info=True)
    finally:
        if user_id is not None:
            _release_play(user_id)

    session.start_round(
        hidden_meaning=generated.hidden_meaning,
        image_prompt=generated.image_prompt,
        language=language,
        image_url=image_url,
    )
    return RoundStartResult(RoundStartStatus.STARTED, plays_today=plays_today)
