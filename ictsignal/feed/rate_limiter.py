"""Rate limiter for the quote provider.

Holds the time of the last granted call so callers can share one
instance instead of module-level timers.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("ictsignal.feed")


class RateLimiter:
    """Enforces a minimum interval between consecutive calls.

    Args:
        min_interval_seconds: Minimum spacing between two grants.
        clock: Monotonic clock returning seconds (injectable for tests).
        sleep: Coroutine function used to wait.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._min_interval = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def acquire(self) -> float:
        """Wait until a call is allowed.  Returns the seconds waited."""
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self._min_interval:
                    waited = self._min_interval - elapsed
                    logger.info("Rate limiting: waiting %.1fs", waited)
                    await self._sleep(waited)
            self._last_call = self._clock()
            return waited
