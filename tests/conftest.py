import pytest
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from typer.testing import CliRunner

from promptgate.domain.interfaces.ai_model import CompletionProvider
from promptgate.infrastructure.config import settings

TEST_API_KEY = "sk-test-key"

class FakeClock:
    """Manually advanced monotonic clock paired with a sleep that advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

def make_completion(
    content: Optional[str] = "Mocked AI response",
    prompt_tokens: int = 10,
    completion_tokens: int = 20,
    model: str = "gpt-4o-mini-2024-07-18",
    finish_reason: str = "stop",
    tool_calls: Optional[list] = None,
    with_usage: bool = True,
) -> SimpleNamespace:
    """Builds an object shaped like openai's ChatCompletion."""
    usage = None
    if with_usage:
        usage = SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    choice = SimpleNamespace(index=0, message=message, finish_reason=finish_reason)
    return SimpleNamespace(id="chatcmpl-test", model=model, choices=[choice], usage=usage)

def make_chunk(content: Optional[str] = None, finish_reason: Optional[str] = None, model: str = "gpt-4o-mini-2024-07-18") -> SimpleNamespace:
    """Builds an object shaped like openai's ChatCompletionChunk."""
    delta = SimpleNamespace(content=content, role=None, tool_calls=None)
    choice = SimpleNamespace(index=0, delta=delta, finish_reason=finish_reason)
    return SimpleNamespace(id="chatcmpl-test", model=model, choices=[choice])

class FakeProvider(CompletionProvider):
    """Scripted provider: each call consumes the next outcome.

    An outcome is either a value to return or an exception to raise. For
    streams an outcome is a list of chunks, where an exception entry is
    raised at that point of the stream.
    """

    name = "fake"

    def __init__(self, outcomes: Optional[List[Any]] = None, stream_outcomes: Optional[List[Any]] = None):
        self.outcomes = list(outcomes or [])
        self.stream_outcomes = list(stream_outcomes or [])
        self.calls: List[Dict[str, Any]] = []
        self.stream_calls: List[Dict[str, Any]] = []
        self.closed_streams = 0

    async def create_completion(self, params: Dict[str, Any]) -> Any:
        self.calls.append(params)
        outcome = self.outcomes.pop(0) if self.outcomes else make_completion()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def stream_completion(self, params: Dict[str, Any]):
        self.stream_calls.append(params)
        outcome = self.stream_outcomes.pop(0) if self.stream_outcomes else [make_chunk("ok", "stop")]
        if isinstance(outcome, BaseException):
            raise outcome
        try:
            for chunk in outcome:
                if isinstance(chunk, BaseException):
                    raise chunk
                yield chunk
        finally:
            self.closed_streams += 1

@pytest.fixture
def fake_clock():
    return FakeClock()

@pytest.fixture
def fake_provider():
    return FakeProvider()

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture(autouse=True)
def ensure_api_key_for_tests(monkeypatch):
    """Ensure a well-formed dummy API key is set so client construction succeeds."""
    monkeypatch.setenv("OPENAI_API_KEY", TEST_API_KEY)

@pytest.fixture(autouse=True)
def clean_test_config():
    """Reset settings overrides between tests."""
    settings.clear_test_config()
    yield
    settings.clear_test_config()

@pytest.fixture
def completion_factory():
    """Factory for ChatCompletion-shaped objects."""
    return make_completion

@pytest.fixture
def chunk_factory():
    """Factory for ChatCompletionChunk-shaped objects."""
    return make_chunk

@pytest.fixture
def provider_factory():
    """Factory for scripted providers: provider_factory(outcomes, stream_outcomes)."""
    return FakeProvider
