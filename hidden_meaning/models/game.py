# hidden_meaning/models/game.py
from enum import Enum
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional


class Language(str, Enum):
    EN = "EN"
    CN = "CN"
    ID = "ID"


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class GuessOutcomeType(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    REJECTED = "rejected"


class GuessOutcome(BaseModel):
    outcome: GuessOutcomeType
    reason: Optional[str] = None  # Only set for rejections

    @classmethod
    def rejected(cls, reason: str) -> "GuessOutcome":
        return cls(outcome=GuessOutcomeType.REJECTED, reason=reason)

    @property
    def is_rejected(self) -> bool:
        return self.outcome == GuessOutcomeType.REJECTED


class GeneratedPrompt(BaseModel):
    image_prompt: str
    hidden_meaning: str


# --- API payloads ---

class StartRoundRequest(BaseModel):
    language: Language = Language.EN


class GuessRequest(BaseModel):
    guess: str = Field(..., max_length=200)


class RoundPublic(BaseModel):
    round_id: str
    language: Language
    image_url: Optional[str] = None
    display: str
    revealed_count: int
    length: int
    is_complete: bool
    is_guess_pending: bool = False
    messages: List[Message] = []
    labels: Dict[str, str] = {}


class SessionPublic(BaseModel):
    session_id: str
    is_generating: bool = False
    round: Optional[RoundPublic] = None


class GuessResponse(BaseModel):
    outcome: GuessOutcomeType
    reason: Optional[str] = None
    session: SessionPublic
