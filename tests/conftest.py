# tests/conftest.py
import pytest
import logging
from typing import List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hidden_meaning.main import app
from hidden_meaning.db.base import Base
from hidden_meaning.api import deps
from hidden_meaning.core.config import Settings, get_settings
from hidden_meaning.core.security import create_access_token
from hidden_meaning.models.game import GeneratedPrompt, Language
from hidden_meaning.services import round_service, session_store
from hidden_meaning.services.hint_dispatcher import HintDispatcher

SQLALCHEMY_DATABASE_URL_TEST = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL_TEST,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --- Stand-ins for the external collaborators ---

class FakeTextGenerator:
    """Records every prompt; answers from `responses` in order, then `default`."""
    def __init__(self, responses: Optional[List[object]] = None, error: Optional[Exception] = None, default: str = "Think of warmth and light."):
        self.prompts: List[str] = []
        self.responses = list(responses or [])
        self.error = error
        self.default = default

    async def generate_text(self, prompt: str, max_output_tokens: Optional[int] = None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.responses.pop(0) if self.responses else self.default

    async def generate_json(self, prompt: str, response_schema: dict, max_output_tokens: Optional[int] = None):
        return await self.generate_text(prompt, max_output_tokens)


class FakePromptGenerator:
    def __init__(self, generated: Optional[GeneratedPrompt] = None, error: Optional[Exception] = None):
        self.generated = generated or GeneratedPrompt(
            image_prompt="A renaissance painting of a lone candle in a storm", hidden_meaning="hope"
        )
        self.error = error
        self.calls: List[Language] = []

    async def generate(self, language: Language) -> GeneratedPrompt:
        self.calls.append(language)
        if self.error:
            raise self.error
        return self.generated


class FakeImageGenerator:
    def __init__(self, url: str = "https://images.example.com/candle.jpeg", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls: List[str] = []

    async def generate(self, image_prompt: str) -> str:
        self.calls.append(image_prompt)
        if self.error:
            raise self.error
        return self.url


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create tables once for the entire test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """
    Provides a clean, isolated database session for each test function
    by using transactions and rollbacks.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    yield session
    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture
def fake_text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()

@pytest.fixture
def hint_dispatcher(fake_text_generator) -> HintDispatcher:
    return HintDispatcher(fake_text_generator)

@pytest.fixture
def fake_prompt_generator() -> FakePromptGenerator:
    return FakePromptGenerator()

@pytest.fixture
def fake_image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()

@pytest.fixture
def test_settings() -> Settings:
    return Settings(DAILY_PLAY_LIMIT=9, ALLOW_ANONYMOUS_PLAY=False)

@pytest.fixture
def client(db_session, hint_dispatcher, fake_prompt_generator, fake_image_generator, test_settings) -> TestClient:
    """A TestClient wired to the test database and fake collaborators."""
    app.dependency_overrides[deps.get_db] = lambda: db_session
    app.dependency_overrides[deps.get_hint_dispatcher] = lambda: hint_dispatcher
    app.dependency_overrides[deps.get_prompt_generator] = lambda: fake_prompt_generator
    app.dependency_overrides[deps.get_image_generator] = lambda: fake_image_generator
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()

def auth_headers_for(user_id: str) -> dict:
    token = create_access_token({"sub": user_id})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def make_auth_headers():
    return auth_headers_for

@pytest.fixture
def auth_headers() -> dict:
    return auth_headers_for("user_123")

@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Clears in-memory sessions and play reservations before each test."""
    session_store.active_sessions.clear()
    round_service.pending_plays.clear()
    yield
    session_store.active_sessions.clear()
    round_service.pending_plays.clear()

def pytest_configure(config):
    """
    Hook to configure logging levels before tests are run.
    This silences noisy third-party libraries.
    """
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
