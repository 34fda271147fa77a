# hidden_meaning/services/session_store.py
import logging
from typing import Dict, Optional

from hidden_meaning.services.game_session import GameSession
from hidden_meaning.services.hint_dispatcher import HintDispatcher

logger = logging.getLogger("hidden_meaning.services.session_store")  # Logger for this module

# In-memory registry of live sessions. Rounds are not persisted across restarts.
active_sessions: Dict[str, GameSession] = {}


def create_session(hint_dispatcher: HintDispatcher, owner_id: Optional[str] = None) -> GameSession:
    session = GameSession(hint_dispatcher=hint_dispatcher, owner_id=owner_id)
    active_sessions[session.session_id] = session
    logger.info(f"Created game session {session.session_id} (owner: {owner_id}). Active sessions: {len(active_sessions)}")
    return session


def get_session(session_id: str, owner_id: Optional[str] = None) -> Optional[GameSession]:
    """Looks up a session. Sessions created by a signed-in player are only visible to that player."""
    session = active_sessions.get(session_id)
    if session is None:
        return None
    if session.owner_id is not None and session.owner_id != owner_id:
        return None
    return session


def end_session(session_id: str, owner_id: Optional[str] = None) -> bool:
    if get_session(session_id, owner_id) is None:
        return False
    del active_sessions[session_id]
    logger.info(f"Ended game session {session_id}. Active sessions: {len(active_sessions)}")
    return True
