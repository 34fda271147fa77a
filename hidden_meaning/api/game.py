# hidden_meaning/api/game.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from hidden_meaning.api import deps
from hidden_meaning.core.config import Settings, get_settings
from hidden_meaning.models.game import GuessRequest, GuessResponse, SessionPublic, StartRoundRequest
from hidden_meaning.services import round_service, session_store
from hidden_meaning.services.game_session import GameSession
from hidden_meaning.services.hint_dispatcher import HintDispatcher
from hidden_meaning.services.round_service import RoundStartStatus

logger = logging.getLogger("hidden_meaning.api.game")  # Logger for this module
router = APIRouter()

# How each refused round start is reported to the client
ROUND_START_ERROR_CODES = {
    RoundStartStatus.SIGN_IN_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    RoundStartStatus.LIMIT_REACHED: status.HTTP_429_TOO_MANY_REQUESTS,
    RoundStartStatus.BUSY: status.HTTP_409_CONFLICT,
    RoundStartStatus.GENERATION_FAILED: status.HTTP_502_BAD_GATEWAY,
}

@router.post("/sessions", response_model=SessionPublic, status_code=status.HTTP_201_CREATED)
async def create_game_session(
    user_id: Optional[str] = Depends(deps.get_optional_user_id),
    hint_dispatcher: HintDispatcher = Depends(deps.get_hint_dispatcher),
):
    """Opens a new game session. Rounds are started separately."""
    session = session_store.create_session(hint_dispatcher, owner_id=user_id)
    return session.to_public()

@router.get("/sessions/{session_id}", response_model=SessionPublic)
async def get_game_session(session: GameSession = Depends(deps.get_game_session)):
    return session.to_public()

@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_game_session(
    session: GameSession = Depends(deps.get_game_session),
    user_id: Optional[str] = Depends(deps.get_optional_user_id),
):
    session_store.end_session(session.session_id, owner_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/sessions/{session_id}/rounds", response_model=SessionPublic, status_code=status.HTTP_201_CREATED)
async def start_round(
    request: StartRoundRequest,
    session: GameSession = Depends(deps.get_game_session),
    user_id: Optional[str] = Depends(deps.get_optional_user_id),
    db: Session = Depends(deps.get_db),
    prompt_generator=Depends(deps.get_prompt_generator),
    image_generator=Depends(deps.get_image_generator),
    settings: Settings = Depends(get_settings),
):
    """
    Generates a new image + hidden meaning and replaces the session's round.
    Refused when the player hit the daily limit or another generation is running.
    """
    result = await round_service.start_new_round(
        session=session,
        language=request.language,
        user_id=user_id,
        db=db,
        prompt_generator=prompt_generator,
        image_generator=image_generator,
        daily_limit=settings.DAILY_PLAY_LIMIT,
        allow_anonymous=settings.ALLOW_ANONYMOUS_PLAY,
    )
    if not result.started:
        raise HTTPException(status_code=ROUND_START_ERROR_CODES[result.status], detail=result.message)
    return session.to_public()

@router.post("/sessions/{session_id}/guesses", response_model=GuessResponse)
async def submit_guess(
    request: GuessRequest,
    session: GameSession = Depends(deps.get_game_session),
):
    """
    Submits one guess. Rejections (empty, multi-word, finished round...) are
    returned as outcome "rejected" with a reason rather than as HTTP errors.
    """
    outcome = await session.submit_guess(request.guess)
    if outcome.is_rejected:
        logger.debug(f"S:{session.session_id} - Guess rejected: {outcome.reason}")
    return GuessResponse(outcome=outcome.outcome, reason=outcome.reason, session=session.to_public())
