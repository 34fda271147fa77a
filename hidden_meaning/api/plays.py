# hidden_meaning/api/plays.py
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hidden_meaning.api import deps
from hidden_meaning.core.config import Settings, get_settings
from hidden_meaning.crud import crud_play
from hidden_meaning.models.play import PlayPublic, QuotaStatus

logger = logging.getLogger("hidden_meaning.api.plays")  # Logger for this module
router = APIRouter()

@router.get("/quota", response_model=QuotaStatus)
def get_quota_status(
    user_id: str = Depends(deps.get_current_user_id),
    db: Session = Depends(deps.get_db),
    settings: Settings = Depends(get_settings),
):
    """How many rounds the signed-in player has started today and how many are left."""
    plays_today = crud_play.count_plays_today(db, user_id)
    return QuotaStatus(
        plays_today=plays_today,
        daily_limit=settings.DAILY_PLAY_LIMIT,
        remaining=max(settings.DAILY_PLAY_LIMIT - plays_today, 0),
    )

@router.get("/me", response_model=List[PlayPublic])
def get_my_plays(
    user_id: str = Depends(deps.get_current_user_id),
    db: Session = Depends(deps.get_db),
    limit: int = Query(50, ge=1, le=200),
):
    """The signed-in player's recorded plays, most recent first."""
    return [PlayPublic.model_validate(play) for play in crud_play.get_plays_for_user(db, user_id, limit=limit)]
