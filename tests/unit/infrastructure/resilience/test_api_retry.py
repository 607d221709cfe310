import asyncio

import httpx
import openai
import pytest
from unittest.mock import MagicMock, patch

from promptgate.domain.events.api_events import RetryScheduled
from promptgate.domain.events.dispatcher import EventDispatcher
from promptgate.domain.exceptions import OutputValidationError
from promptgate.domain.models.config import RetryPolicy
from promptgate.infrastructure.resilience.api_retry import ApiRetryService

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

def server_error(status_code: int = 503):
    return openai.InternalServerError("upstream unavailable", response=httpx.Response(status_code, request=REQUEST), body=None)

def bad_request():
    return openai.BadRequestError("invalid request", response=httpx.Response(400, request=REQUEST), body=None)

class ScriptedAttempt:
    """Async attempt function that raises or returns the scripted outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.attempt_numbers = []

    async def __call__(self, attempt_number: int):
        self.attempt_numbers.append(attempt_number)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

def on_error(error, attempts):
    return ("error", type(error).__name__, attempts)

@pytest.fixture
def sleeps():
    return []

@pytest.fixture
def service_factory(sleeps):
    async def record_sleep(delay):
        sleeps.append(delay)

    def factory(**policy_kwargs):
        events = EventDispatcher()
        return ApiRetryService(RetryPolicy(**policy_kwargs), events=events, sleep=record_sleep)
    return factory

@pytest.mark.asyncio
async def test_success_on_first_attempt(service_factory, sleeps):
    attempt = ScriptedAttempt("ok")
    result = await service_factory().execute_with_retry(attempt, on_error)
    assert result == "ok"
    assert attempt.attempt_numbers == [1]
    assert sleeps == []

@pytest.mark.asyncio
async def test_retries_transient_errors_then_succeeds(service_factory, sleeps):
    attempt = ScriptedAttempt(server_error(), server_error(502), "ok")
    result = await service_factory(max_attempts=3).execute_with_retry(attempt, on_error)
    assert result == "ok"
    assert attempt.attempt_numbers == [1, 2, 3]
    assert len(sleeps) == 2

@pytest.mark.asyncio
async def test_exhaustion_invokes_attempt_exactly_max_times(service_factory, sleeps):
    attempt = ScriptedAttempt(*[server_error() for _ in range(4)])
    result = await service_factory(max_attempts=4).execute_with_retry(attempt, on_error)
    assert result == ("error", "InternalServerError", 4)
    assert attempt.attempt_numbers == [1, 2, 3, 4]
    assert len(sleeps) == 3

@pytest.mark.asyncio
async def test_terminal_error_short_circuits(service_factory, sleeps):
    attempt = ScriptedAttempt(bad_request(), "never reached")
    result = await service_factory(max_attempts=5).execute_with_retry(attempt, on_error)
    assert result == ("error", "BadRequestError", 1)
    assert attempt.attempt_numbers == [1]
    assert sleeps == []

@pytest.mark.asyncio
async def test_schema_mismatch_is_not_retried(service_factory, sleeps):
    attempt = ScriptedAttempt(OutputValidationError(["value: Field required"]))
    result = await service_factory().execute_with_retry(attempt, on_error)
    assert result == ("error", "OutputValidationError", 1)
    assert sleeps == []

@pytest.mark.asyncio
async def test_disabled_retry_makes_one_attempt(service_factory, sleeps):
    attempt = ScriptedAttempt(server_error(), "ok")
    result = await service_factory(enabled=False, max_attempts=5).execute_with_retry(attempt, on_error)
    assert result == ("error", "InternalServerError", 1)
    assert attempt.attempt_numbers == [1]
    assert sleeps == []

@pytest.mark.asyncio
async def test_backoff_doubles_between_attempts(service_factory, sleeps):
    attempt = ScriptedAttempt(server_error(), server_error(), server_error(), "ok")
    with patch("promptgate.infrastructure.resilience.delay.random.random", return_value=0.0):
        await service_factory(max_attempts=4, base_delay=0.5, max_delay=10.0).execute_with_retry(attempt, on_error)
    assert sleeps == [0.5, 1.0, 2.0]

@pytest.mark.asyncio
async def test_backoff_respects_cap_with_jitter(service_factory, sleeps):
    attempt = ScriptedAttempt(*[server_error() for _ in range(8)])
    await service_factory(max_attempts=8, base_delay=1.0, max_delay=4.0).execute_with_retry(attempt, on_error)
    assert all(0 <= delay <= 4.0 * 1.25 for delay in sleeps)

@pytest.mark.asyncio
async def test_retry_scheduled_events_are_dispatched(sleeps):
    listener = MagicMock()
    events = EventDispatcher()
    events.subscribe(listener)

    async def record_sleep(delay):
        sleeps.append(delay)

    service = ApiRetryService(RetryPolicy(max_attempts=2), events=events, sleep=record_sleep)
    attempt = ScriptedAttempt(server_error(), "ok")
    await service.execute_with_retry(attempt, on_error)

    listener.assert_called_once()
    event = listener.call_args.args[0]
    assert isinstance(event, RetryScheduled)
    assert event.attempt_number == 1
    assert event.failure_kind == "server"
    assert event.delay_seconds == sleeps[0]

@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed(service_factory):
    attempt = ScriptedAttempt(asyncio.CancelledError())
    with pytest.raises(asyncio.CancelledError):
        await service_factory().execute_with_retry(attempt, on_error)
