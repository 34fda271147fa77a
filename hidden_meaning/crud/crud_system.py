# hidden_meaning/crud/crud_system.py
import logging
from sqlalchemy.orm import Session
from hidden_meaning.schemas.system import SystemAlert

logger = logging.getLogger("hidden_meaning.crud.system")

def create_alert(db: Session, level: str, message: str, details: str | None = None) -> SystemAlert | None:
    """Creates a new system alert record. Returns None if the write failed."""
    try:
        alert = SystemAlert(level=level, message=message, details=details)
        db.add(alert)
        db.commit()
        db.refresh(alert)
        return alert
    except Exception as e:
        # If logging to DB fails, we must fall back to standard logging
        db.rollback()
        logger.critical(f"CRITICAL: FAILED TO LOG ALERT TO DATABASE: {e}")
        logger.critical(f"Original Alert: [{level}] {message} | Details: {details}")
        return None