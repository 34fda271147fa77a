# tests/services/test_round_service.py
import asyncio
import datetime

import pytest
from sqlalchemy.exc import OperationalError

from hidden_meaning.core.exceptions import GenerationError, ImageGenerationError
from hidden_meaning.crud import crud_play
from hidden_meaning.models.game import GeneratedPrompt, Language
from hidden_meaning.services import round_service
from hidden_meaning.services.game_session import GameSession
from hidden_meaning.services.round_service import RoundStartStatus, start_new_round


def seed_plays(db, user_id: str, count: int, created_at: datetime.datetime | None = None):
    for i in range(count):
        crud_play.record_play(db, user_id, f"https://images.example.com/{i}.jpeg", f"meaning{i}", "EN", created_at=created_at)


async def run_start(session, db, prompt_generator, image_generator, user_id="user_123", language=Language.EN, allow_anonymous=False):
    return await start_new_round(
        session=session,
        language=language,
        user_id=user_id,
        db=db,
        prompt_generator=prompt_generator,
        image_generator=image_generator,
        daily_limit=9,
        allow_anonymous=allow_anonymous,
    )


@pytest.mark.asyncio
async def test_start_round_success_records_play(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator, language=Language.ID)

    assert result.started
    assert result.plays_today == 1
    assert fake_prompt_generator.calls == [Language.ID]
    assert fake_image_generator.calls == ["A renaissance painting of a lone candle in a storm"]
    assert session.round.hidden_meaning == "hope"
    assert session.round.image_url == "https://images.example.com/candle.jpeg"
    assert session.round.language == Language.ID
    assert session.is_generating is False

    plays = crud_play.get_plays_for_user(db_session, "user_123")
    assert len(plays) == 1
    assert plays[0].hidden_meaning == "hope"
    assert plays[0].language == "ID"

@pytest.mark.asyncio
async def test_limit_reached_skips_generation(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    seed_plays(db_session, "user_123", 9)
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.status == RoundStartStatus.LIMIT_REACHED
    assert result.message == "Daily limit reached. You can play 9 rounds per day. Come back tomorrow!"
    assert result.plays_today == 9
    assert fake_prompt_generator.calls == []
    assert fake_image_generator.calls == []
    assert session.round is None
    assert crud_play.count_plays_today(db_session, "user_123") == 9

@pytest.mark.asyncio
async def test_eighth_play_allows_ninth(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    seed_plays(db_session, "user_123", 8)
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.started
    assert result.plays_today == 9

@pytest.mark.asyncio
async def test_plays_from_yesterday_do_not_count(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    yesterday = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=1)
    seed_plays(db_session, "user_123", 9, created_at=yesterday)
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.started

@pytest.mark.asyncio
async def test_other_users_plays_do_not_count(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    seed_plays(db_session, "someone_else", 9)
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.started

@pytest.mark.asyncio
async def test_prompt_failure_keeps_previous_round(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)
    session.start_round("fire", "A renaissance hearth", Language.EN)
    previous_round_id = session.round.round_id
    fake_prompt_generator.error = GenerationError("Invalid JSON response from Gemini")

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.status == RoundStartStatus.GENERATION_FAILED
    assert result.message == "Failed to generate image. Please try again."
    assert session.round.round_id == previous_round_id
    assert session.is_generating is False
    assert fake_image_generator.calls == []
    assert crud_play.count_plays_today(db_session, "user_123") == 0

@pytest.mark.asyncio
async def test_image_failure_does_not_record_play(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)
    fake_image_generator.error = ImageGenerationError("No image URL in fal response")

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.status == RoundStartStatus.GENERATION_FAILED
    assert session.round is None
    assert crud_play.count_plays_today(db_session, "user_123") == 0

@pytest.mark.asyncio
async def test_busy_session_is_refused(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)
    session.is_generating = True

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.status == RoundStartStatus.BUSY
    assert fake_prompt_generator.calls == []

@pytest.mark.asyncio
async def test_anonymous_refused_by_default(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator, user_id=None)

    assert result.status == RoundStartStatus.SIGN_IN_REQUIRED
    assert fake_prompt_generator.calls == []

@pytest.mark.asyncio
async def test_anonymous_allowed_is_not_recorded(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator, user_id=None, allow_anonymous=True)

    assert result.started
    assert result.plays_today is None
    assert session.round.hidden_meaning == "hope"

@pytest.mark.asyncio
async def test_record_failure_still_starts_round(mocker, db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    mocker.patch.object(
        round_service.crud_play, "record_play",
        side_effect=OperationalError("INSERT INTO plays", {}, Exception("database is locked")),
    )
    rollback = mocker.patch.object(db_session, "rollback")
    session = GameSession(hint_dispatcher=hint_dispatcher)

    result = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert result.started
    assert result.plays_today == 0
    rollback.assert_called_once()
    assert session.round.hidden_meaning == "hope"


class _SlowPromptGenerator:
    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = []

    async def generate(self, language):
        self.calls.append(language)
        self.started.set()
        await self.release.wait()
        return GeneratedPrompt(image_prompt="A renaissance painting of an hourglass", hidden_meaning="time")


@pytest.mark.asyncio
async def test_parallel_sessions_cannot_exceed_daily_limit(db_session, hint_dispatcher, fake_image_generator):
    seed_plays(db_session, "user_123", 8)
    slow_generator = _SlowPromptGenerator()
    sessions = [GameSession(hint_dispatcher=hint_dispatcher) for _ in range(3)]

    first = asyncio.create_task(run_start(sessions[0], db_session, slow_generator, fake_image_generator))
    await slow_generator.started.wait()
    second = await run_start(sessions[1], db_session, slow_generator, fake_image_generator)
    third = await run_start(sessions[2], db_session, slow_generator, fake_image_generator)
    slow_generator.release.set()
    first_result = await first

    assert first_result.started
    assert second.status == RoundStartStatus.LIMIT_REACHED
    assert third.status == RoundStartStatus.LIMIT_REACHED
    assert len(slow_generator.calls) == 1
    assert crud_play.count_plays_today(db_session, "user_123") == 9
    assert round_service.pending_plays == {}

@pytest.mark.asyncio
async def test_failed_generation_releases_reservation(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator):
    seed_plays(db_session, "user_123", 8)
    fake_image_generator.error = ImageGenerationError("No image URL in fal response")
    session = GameSession(hint_dispatcher=hint_dispatcher)

    failed = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)
    fake_image_generator.error = None
    retried = await run_start(session, db_session, fake_prompt_generator, fake_image_generator)

    assert failed.status == RoundStartStatus.GENERATION_FAILED
    assert retried.started
    assert round_service.pending_plays == {}
