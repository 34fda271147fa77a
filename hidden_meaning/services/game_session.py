# hidden_meaning/services/game_session.py
import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from hidden_meaning.models.game import (
    GuessOutcome,
    GuessOutcomeType,
    Language,
    Message,
    RoundPublic,
    SessionPublic,
)
from hidden_meaning.services.hint_dispatcher import HintDispatcher
from hidden_meaning.services.languages import get_profile

logger = logging.getLogger("hidden_meaning.services.game_session")  # Logger for this module

PLACEHOLDER_GLYPH = "_"

REJECT_NO_ROUND = "no active round"
REJECT_COMPLETE = "round complete"
REJECT_PENDING = "guess in progress"
REJECT_MULTI_WORD = "single word only"
REJECT_EMPTY = "empty guess"
REJECT_TOO_LONG = "guess too long"


def format_display(hidden_meaning: str, revealed_count: int, show_all: bool = False) -> str:
    """
    Renders the hidden meaning one position at a time: revealed positions uppercased,
    the rest as placeholders, joined by single spaces.
    """
    return " ".join(
        ch.upper() if show_all or index < revealed_count else PLACEHOLDER_GLYPH
        for index, ch in enumerate(hidden_meaning)
    )


class Round(BaseModel):
    round_id: str = Field(default_factory=lambda: uuid.uuid4().hex, frozen=True)
    hidden_meaning: str = Field(..., min_length=1, frozen=True)
    image_prompt: Optional[str] = Field(default=None, frozen=True)
    image_url: Optional[str] = Field(default=None, frozen=True)
    language: Language = Field(default=Language.EN, frozen=True)
    revealed_count: int = 1
    is_complete: bool = False
    guess_pending: bool = False
    messages: List[Message] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.hidden_meaning)


class GameSession:
    """
    One player's game: the active round, its conversation log and the
    reveal/hint protocol applied to each guess.
    """

    def __init__(
        self,
        hint_dispatcher: HintDispatcher,
        session_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.owner_id = owner_id  # None for signed-out players
        self.hint_dispatcher = hint_dispatcher
        self.round: Optional[Round] = None
        self.is_generating = False  # Set by the round service while a new round is being generated

    # --- Session state ---

    def start_round(
        self,
        hidden_meaning: str,
        image_prompt: Optional[str],
        language: Language,
        image_url: Optional[str] = None,
    ) -> Round:
        """Replaces the current round wholesale. The old round's log and progress are dropped."""
        self.round = Round(
            hidden_meaning=hidden_meaning,
            image_prompt=image_prompt,
            image_url=image_url,
            language=language,
        )
        logger.info(
            f"S:{self.session_id} - New round {self.round.round_id} started (lang: {self.round.language.value}, length: {self.round.length})",
            extra={"session_id": self.session_id, "round_id": self.round.round_id},
        )
        return self.round

    @property
    def revealed_count(self) -> int:
        return self.round.revealed_count if self.round else 0

    @property
    def is_complete(self) -> bool:
        return bool(self.round and self.round.is_complete)

    @property
    def messages(self) -> List[Message]:
        return list(self.round.messages) if self.round else []

    def current_display(self, show_all: bool = False) -> str:
        if self.round is None:
            return ""
        return format_display(self.round.hidden_meaning, self.round.revealed_count, show_all)

    def _is_current(self, game_round: Round) -> bool:
        return self.round is not None and self.round.round_id == game_round.round_id

    # --- Reveal policy ---

    async def submit_guess(self, raw: str) -> GuessOutcome:
        game_round = self.round
        if game_round is None:
            return GuessOutcome.rejected(REJECT_NO_ROUND)
        if game_round.is_complete:
            return GuessOutcome.rejected(REJECT_COMPLETE)
        if game_round.guess_pending:
            return GuessOutcome.rejected(REJECT_PENDING)

        profile = get_profile(game_round.language)

        if profile.has_multiple_words(raw):
            game_round.messages.append(Message(role="user", content=raw.strip().lower()))
            game_round.messages.append(Message(role="assistant", content=profile.one_word_message))
            return GuessOutcome.rejected(REJECT_MULTI_WORD)

        guess = profile.normalize(raw)
        if not guess:
            return GuessOutcome.rejected(REJECT_EMPTY)
        answer = profile.normalize(game_round.hidden_meaning)
        # Meanings longer than the input limit must stay guessable
        if len(guess) > max(profile.max_guess_length, len(answer)):
            return GuessOutcome.rejected(REJECT_TOO_LONG)

        game_round.messages.append(Message(role="user", content=guess))

        if guess.lower() == answer.lower():
            return await self._handle_correct(game_round)
        return await self._handle_incorrect(game_round, guess)

    async def _handle_correct(self, game_round: Round) -> GuessOutcome:
        game_round.revealed_count = game_round.length
        game_round.is_complete = True
        game_round.messages.append(Message(role="assistant", content=get_profile(game_round.language).correct_message))
        logger.info(
            f"S:{self.session_id} - Round {game_round.round_id} solved.",
            extra={"session_id": self.session_id, "round_id": game_round.round_id},
        )

        game_round.guess_pending = True
        try:
            explanation = await self.hint_dispatcher.request_explanation(
                game_round.hidden_meaning, game_round.image_prompt, game_round.language
            )
        finally:
            game_round.guess_pending = False
        self._append_assistant_message(game_round, explanation)
        return GuessOutcome(outcome=GuessOutcomeType.CORRECT)

    async def _handle_incorrect(self, game_round: Round, guess: str) -> GuessOutcome:
        if game_round.revealed_count < game_round.length:
            game_round.revealed_count += 1

        game_round.guess_pending = True
        try:
            hint = await self.hint_dispatcher.request_hint(game_round.hidden_meaning, guess, game_round.language)
        finally:
            game_round.guess_pending = False
        self._append_assistant_message(game_round, hint)
        return GuessOutcome(outcome=GuessOutcomeType.INCORRECT)

    def _append_assistant_message(self, game_round: Round, content: str) -> None:
        if not self._is_current(game_round):
            # The player moved on to a new round while this request was in flight.
            logger.info(
                f"S:{self.session_id} - Discarding late response for replaced round {game_round.round_id}.",
                extra={"session_id": self.session_id, "round_id": game_round.round_id},
            )
            return
        game_round.messages.append(Message(role="assistant", content=content))

    # --- Views ---

    def to_public(self) -> SessionPublic:
        round_view = None
        if self.round is not None:
            game_round = self.round
            round_view = RoundPublic(
                round_id=game_round.round_id,
                language=game_round.language,
                image_url=game_round.image_url,
                display=self.current_display(show_all=game_round.is_complete),
                revealed_count=game_round.revealed_count,
                length=game_round.length,
                is_complete=game_round.is_complete,
                is_guess_pending=game_round.guess_pending,
                messages=list(game_round.messages),
                labels=dict(get_profile(game_round.language).labels),
            )
        return SessionPublic(session_id=self.session_id, is_generating=self.is_generating, round=round_view)
