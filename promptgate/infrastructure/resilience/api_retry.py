"""Service for executing API calls with automatic retries.

Implements capped exponential backoff for transient errors like rate limits
(429), timeouts, temporary server issues (5xx) and network failures. Terminal
failures and exhausted retries are handed to a caller-supplied error handler
instead of being raised.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional, TypeVar

from promptgate.domain.events.api_events import RetryScheduled
from promptgate.domain.events.dispatcher import EventDispatcher
from promptgate.domain.models.config import RetryPolicy
from promptgate.infrastructure.resilience.delay import calculate_exponential_backoff
from promptgate.infrastructure.resilience.error_classifier import (
    RETRIABLE_KINDS,
    classify_failure,
    get_error_message,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

AttemptFunc = Callable[[int], Coroutine[Any, Any, T]]
ErrorHandler = Callable[[BaseException, int], T]

class ApiRetryService:
    """Drives one logical request through ATTEMPTING(n) -> SUCCEEDED | EXHAUSTED."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        events: Optional[EventDispatcher] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the ApiRetryService.

        Args:
            policy: Retry configuration. Uses defaults if not provided.
            events: Dispatcher receiving RetryScheduled events.
            sleep: Coroutine used to wait between attempts.
        """
        self.policy = policy or RetryPolicy()
        self.events = events or EventDispatcher()
        self._sleep = sleep

        logger.info(
            f"ApiRetryService initialized: enabled={self.policy.enabled}, "
            f"max_attempts={self.policy.max_attempts}, base_delay={self.policy.base_delay}s, "
            f"max_delay={self.policy.max_delay}s"
        )

    def calculate_delay(self, attempt: int) -> float:
        """Backoff to wait after the zero-based `attempt` failed."""
        return calculate_exponential_backoff(
            attempt,
            self.policy.base_delay,
            self.policy.max_delay,
            use_jitter=True,
            jitter_factor=self.policy.jitter_factor,
        )

    async def execute_with_retry(self, func: AttemptFunc, on_error: ErrorHandler) -> T:
        """Runs `func` until it succeeds, fails terminally, or attempts run out.

        Args:
            func: Async attempt function; receives the 1-based attempt number.
            on_error: Called with the most recent error and the number of
                attempts made; its return value becomes the result.

        Returns:
            The attempt's result, or whatever `on_error` returns.
        """
        if not self.policy.enabled:
            try:
                return await func(1)
            except Exception as e:
                logger.debug(f"Retry disabled; routing failure to error handler: {get_error_message(e)}")
                return on_error(e, 1)

        last_error: Optional[BaseException] = None
        attempts_made = 0

        for attempt in range(self.policy.max_attempts):
            attempts_made = attempt + 1
            try:
                return await func(attempts_made)
            except Exception as e:
                last_error = e
                kind = classify_failure(e)

                if kind not in RETRIABLE_KINDS:
                    logger.debug(f"Non-retriable {kind.value} error encountered: {get_error_message(e)}")
                    return on_error(e, attempts_made)

                if attempts_made >= self.policy.max_attempts:
                    logger.error(
                        f"Request failed after {self.policy.max_attempts} attempts: {get_error_message(e)}"
                    )
                    break

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"Request failed (attempt {attempts_made}/{self.policy.max_attempts}): "
                    f"{type(e).__name__}: {get_error_message(e)}. Retrying in {delay:.2f}s..."
                )
                self.events.dispatch(RetryScheduled(
                    attempt_number=attempts_made,
                    delay_seconds=delay,
                    failure_kind=kind.value,
                    error_message=get_error_message(e),
                ))
                await self._sleep(delay)

        return on_error(last_error, attempts_made)
