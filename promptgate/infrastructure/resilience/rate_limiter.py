"""Sliding-window rate limiter for requests and tokens.

Tracks a rolling history of request starts and token usage and answers
"may a request of N tokens proceed now?". Token usage is accounted in two
stages: a provisional reservation made with the estimate before the upstream
call, then a commit that replaces the estimate with the reported usage.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional

from promptgate.domain.exceptions import RateLimitCeilingError
from promptgate.domain.models.config import (
    DEFAULT_RATE_LIMIT_POLL_INTERVAL_S,
    DEFAULT_RATE_LIMIT_WINDOW_S,
)

logger = logging.getLogger(__name__)

@dataclass
class TokenEvent:
    """Tokens attributed to one request at a point in time."""
    timestamp: float
    tokens: int
    committed: bool = False

@dataclass
class Reservation:
    """Handle on a recorded request, used to commit its actual usage later."""
    timestamp: float
    estimated_tokens: int
    token_event: Optional[TokenEvent] = None
    committed: bool = False

@dataclass(frozen=True)
class WindowUsage:
    """Snapshot of what currently counts against the window."""
    requests: int
    reserved_tokens: int
    committed_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.reserved_tokens + self.committed_tokens

class RateLimitWindow:
    """Rolling-window admission control on request count and token count.

    `None` for a ceiling means unlimited. Owned by exactly one client; not
    safe to share across threads.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        max_tokens: Optional[int] = None,
        window: float = DEFAULT_RATE_LIMIT_WINDOW_S,
        poll_interval: float = DEFAULT_RATE_LIMIT_POLL_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the rate limit window.

        Args:
            max_requests: Maximum request starts within the window.
            max_tokens: Maximum tokens within the window.
            window: Window length in seconds.
            poll_interval: Seconds between admission re-checks while waiting.
            clock: Monotonic time source.
            sleep: Coroutine used to wait between polls.
        """
        self.max_requests = max_requests
        self.max_tokens = max_tokens
        self.window = window
        self.poll_interval = poll_interval
        self.request_events: Deque[float] = deque()
        self.token_events: Deque[TokenEvent] = deque()
        self._clock = clock
        self._sleep = sleep
        logger.info(
            f"RateLimitWindow initialized: requests={max_requests or 'unlimited'}, "
            f"tokens={max_tokens or 'unlimited'} / {window} seconds"
        )

    @property
    def unlimited(self) -> bool:
        return self.max_requests is None and self.max_tokens is None

    def _prune(self, now: float) -> None:
        """Drops entries that are no longer strictly inside the window."""
        cutoff = now - self.window
        while self.request_events and self.request_events[0] <= cutoff:
            self.request_events.popleft()
        while self.token_events and self.token_events[0].timestamp <= cutoff:
            self.token_events.popleft()

    def _tokens_in_window(self) -> int:
        return sum(event.tokens for event in self.token_events)

    def _request_limit_exceeded(self) -> bool:
        return self.max_requests is not None and len(self.request_events) >= self.max_requests

    def _token_limit_exceeded(self, estimated_tokens: int) -> bool:
        if self.max_tokens is None or estimated_tokens == 0:
            return False
        return self._tokens_in_window() + estimated_tokens > self.max_tokens

    def may_proceed(self, estimated_tokens: int = 0) -> bool:
        """Checks whether a request of `estimated_tokens` would be admitted now."""
        if self.unlimited:
            return True

        self._prune(self._clock())
        if self._request_limit_exceeded():
            return False
        if self._token_limit_exceeded(estimated_tokens):
            return False
        return True

    def record(self, tokens_used: int = 0) -> Reservation:
        """Records a request start, plus a token entry when `tokens_used > 0`."""
        now = self._clock()
        self._prune(now)
        self.request_events.append(now)

        token_event = None
        if tokens_used > 0:
            token_event = TokenEvent(timestamp=now, tokens=tokens_used)
            self.token_events.append(token_event)

        logger.debug(
            f"Request recorded ({tokens_used} tokens). Window now holds "
            f"{len(self.request_events)} requests / {self._tokens_in_window()} tokens."
        )
        return Reservation(timestamp=now, estimated_tokens=tokens_used, token_event=token_event)

    def commit(self, reservation: Reservation, actual_tokens: Optional[int] = None) -> None:
        """Replaces a reservation's provisional token count with the actual usage.

        With `actual_tokens=None` the estimate is kept and marked committed.
        A reservation that already aged out of the window is left alone.
        """
        if reservation.committed:
            logger.warning("Reservation already committed; ignoring second commit.")
            return
        reservation.committed = True

        now = self._clock()
        self._prune(now)
        if reservation.timestamp <= now - self.window:
            logger.debug("Reservation aged out of the window before commit.")
            return

        event = reservation.token_event
        if event is not None:
            if actual_tokens is not None:
                event.tokens = max(0, actual_tokens)
            event.committed = True
        elif actual_tokens:
            # Nothing was reserved up front; account the reported usage now.
            event = TokenEvent(timestamp=now, tokens=actual_tokens, committed=True)
            self.token_events.append(event)
            reservation.token_event = event

        logger.debug(
            f"Reservation committed: estimated={reservation.estimated_tokens}, "
            f"actual={actual_tokens if actual_tokens is not None else 'unreported'}"
        )

    def get_wait_time(self, estimated_tokens: int = 0) -> float:
        """Estimates the seconds until a request of this size would be admitted."""
        if self.unlimited:
            return 0.0

        now = self._clock()
        self._prune(now)
        wait_time = 0.0

        if self._request_limit_exceeded():
            # The oldest entries that must slide out to get below the ceiling.
            excess = len(self.request_events) - self.max_requests
            blocking = self.request_events[excess]
            wait_time = max(wait_time, blocking + self.window - now)

        if self._token_limit_exceeded(estimated_tokens):
            remaining = self._tokens_in_window()
            for event in self.token_events:
                remaining -= event.tokens
                if remaining + estimated_tokens <= self.max_tokens:
                    wait_time = max(wait_time, event.timestamp + self.window - now)
                    break

        return max(0.0, wait_time)

    def check_ceiling(self, estimated_tokens: int) -> None:
        """Raises RateLimitCeilingError if the estimate alone exceeds the token ceiling."""
        if self.max_tokens is not None and estimated_tokens > self.max_tokens:
            raise RateLimitCeilingError(estimated_tokens, self.max_tokens)

    async def wait_until_admitted(self, estimated_tokens: int = 0) -> float:
        """Suspends until `may_proceed(estimated_tokens)` is True.

        Returns:
            Seconds spent waiting.

        Raises:
            RateLimitCeilingError: If the estimate alone exceeds the token ceiling.
        """
        self.check_ceiling(estimated_tokens)

        waited = 0.0
        while not self.may_proceed(estimated_tokens):
            logger.debug(f"Rate limit reached. Re-checking in {self.poll_interval:.2f}s.")
            await self._sleep(self.poll_interval)
            waited += self.poll_interval
        return waited

    async def acquire(self, estimated_tokens: int = 0) -> Reservation:
        """Waits for admission and records a provisional reservation.

        The final admission check and the record happen in the same
        scheduling turn, so concurrent tasks cannot both be admitted on the
        same free slot.
        """
        await self.wait_until_admitted(estimated_tokens)
        return self.record(estimated_tokens)

    def usage(self) -> WindowUsage:
        """Returns a snapshot of the current window contents."""
        self._prune(self._clock())
        reserved = sum(e.tokens for e in self.token_events if not e.committed)
        committed = sum(e.tokens for e in self.token_events if e.committed)
        return WindowUsage(
            requests=len(self.request_events),
            reserved_tokens=reserved,
            committed_tokens=committed,
        )
