# hidden_meaning/crud/crud_play.py
import datetime
import logging
from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session
from hidden_meaning.schemas.play import Play

logger = logging.getLogger("hidden_meaning.crud.play")  # Logger for this module

def _start_of_day_utc(now: datetime.datetime | None = None) -> datetime.datetime:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)

def count_plays_today(db: Session, user_id: str, now: datetime.datetime | None = None) -> int:
    """Number of plays recorded for this user since midnight UTC."""
    day_start = _start_of_day_utc(now)
    day_end = day_start + datetime.timedelta(days=1)
    return (
        db.query(func.count(Play.id))
        .filter(
            Play.user_id == user_id,
            Play.created_at >= day_start,
            Play.created_at < day_end,
        )
        .scalar()
    ) or 0

def record_play(
    db: Session,
    user_id: str,
    image_url: str,
    hidden_meaning: str,
    language: str,
    created_at: datetime.datetime | None = None,
) -> Play:
    db_play = Play(
        user_id=user_id,
        image_url=image_url,
        hidden_meaning=hidden_meaning,
        language=language,
        created_at=created_at or datetime.datetime.now(datetime.timezone.utc),
    )
    db.add(db_play)
    db.commit()
    db.refresh(db_play)
    logger.info(f"Recorded play {db_play.id} for user {user_id} (lang: {language})")
    return db_play

def get_plays_for_user(db: Session, user_id: str, limit: int = 50) -> List[Play]:
    """Most recent plays first."""
    return (
        db.query(Play)
        .filter(Play.user_id == user_id)
        .order_by(Play.created_at.desc(), Play.id.desc())
        .limit(limit)
        .all()
    )
