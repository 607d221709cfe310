"""Fixed-interval throttle with optional jitter.

Enforces a minimum spacing between successive request starts made through
the same gate.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from promptgate.infrastructure.resilience.delay import (
    DEFAULT_JITTER_FACTOR,
    calculate_delay_with_jitter,
)

logger = logging.getLogger(__name__)

class ThrottleGate:
    """Spaces request starts at least `min_interval` seconds apart (± jitter).

    Not safe to share across threads. Concurrent tasks on one event loop may
    both wake from their sleeps and start close together; the gate only
    orders its own call sequence.
    """

    def __init__(
        self,
        min_interval: Optional[float] = None,
        use_jitter: bool = True,
        jitter_factor: float = DEFAULT_JITTER_FACTOR,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the throttle gate.

        Args:
            min_interval: Minimum seconds between request starts. None or 0 disables.
            use_jitter: Randomize the remaining wait.
            jitter_factor: Jitter span as a fraction of the wait (0-1).
            clock: Monotonic time source.
            sleep: Coroutine used to wait.
        """
        self.min_interval = min_interval
        self.use_jitter = use_jitter
        self.jitter_factor = jitter_factor
        self.last_request_time: Optional[float] = None
        self._clock = clock
        self._sleep = sleep
        logger.info(
            f"ThrottleGate initialized: min_interval={min_interval}s, "
            f"jitter={'on' if use_jitter else 'off'} ({jitter_factor})"
        )

    def pending_delay(self) -> float:
        """Seconds left before the next start is allowed (without jitter)."""
        if not self.min_interval or self.last_request_time is None:
            return 0.0
        elapsed = self._clock() - self.last_request_time
        return max(0.0, self.min_interval - elapsed)

    async def throttle(self) -> float:
        """Waits until the next request may start.

        Returns:
            The number of seconds actually slept.
        """
        if not self.min_interval:
            return 0.0

        slept = 0.0
        remaining = self.pending_delay()
        if remaining > 0:
            slept = calculate_delay_with_jitter(remaining, self.use_jitter, self.jitter_factor)
            logger.debug(f"Throttling request start for {slept:.3f}s (remaining {remaining:.3f}s).")
            await self._sleep(slept)

        self.last_request_time = self._clock()
        return slept
