"""Shared test fixtures for the prompt relay."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from src.agent import CompletionClient, create_agent
from src.config import Config
from src.main import create_app
from src.services.conversation_store import ConversationStore

# Never let a test reach a real provider
models.ALLOW_MODEL_REQUESTS = False

SALES_TEST_REPLY = "\n".join(f"{i}. ¿Pregunta de prueba número {i}?" for i in range(1, 11))
TESTING_ONLY_REPLY = "This is for testing purposes only!"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_config() -> Config:
    """Create a test Config."""
    return Config(
        groq_api_base_url="https://api.groq.test/openai/v1",
        groq_api_key="test-key",
        allowed_origins=["https://sinergiagdl.com"],
    )


# ============================================================================
# Provider Mocking Fixtures
# ============================================================================


def user_prompts(messages: list[ModelMessage]) -> list[str]:
    """Collect user prompt contents from a message list, in order."""
    prompts = []
    for message in messages:
        if isinstance(message, ModelRequest):
            for part in message.parts:
                if isinstance(part, UserPromptPart):
                    prompts.append(part.content)
    return prompts


class FakeProvider:
    """Callable for FunctionModel that records calls and answers like the preamble asks.

    Set ``error`` to make the next calls raise, or ``reply`` to force a fixed text.
    """

    def __init__(self):
        self.calls: list[list[ModelMessage]] = []
        self.error: Exception | None = None
        self.reply: str | None = None

    def __call__(self, messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        if self.reply is not None:
            return ModelResponse(parts=[TextPart(content=self.reply)])
        latest = user_prompts(messages)[-1]
        text = SALES_TEST_REPLY if latest == "sales test" else TESTING_ONLY_REPLY
        return ModelResponse(parts=[TextPart(content=text)])


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Create a fake provider that can be configured per test."""
    return FakeProvider()


@pytest.fixture
def test_agent(fake_provider: FakeProvider):
    """Agent backed by the fake provider."""
    return create_agent(FunctionModel(fake_provider))


@pytest.fixture
def completion_client(test_agent) -> CompletionClient:
    """Completion client backed by the fake provider."""
    return CompletionClient(test_agent)


@pytest.fixture
def store() -> ConversationStore:
    """Fresh unbounded conversation store."""
    return ConversationStore()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(test_config: Config, test_agent, store: ConversationStore):
    """Application wired to the fake provider and the test store."""
    return create_app(test_config, agent=test_agent, store=store)


@pytest.fixture
def client(app):
    """Test client with lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_httpx_async_client():
    """Build a patched ``httpx.AsyncClient`` class returning the given response."""

    def _build(response: MagicMock | None = None, post_side_effect: Exception | None = None):
        mock_client_class = MagicMock()
        mock_client = mock_client_class.return_value.__aenter__.return_value
        mock_client.post = AsyncMock(return_value=response, side_effect=post_side_effect)
        return mock_client_class

    return _build
