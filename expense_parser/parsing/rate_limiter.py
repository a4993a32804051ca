"""
Global rate limiter for remote extraction calls.

A single "time of last call" shared by every caller. Before each remote
call the caller waits until min_interval has passed since the previous
one. Not per-key, not a token bucket.

CRITICAL: The timestamp is guarded by a threading.Lock, not an
asyncio.Lock. A hosting service may share one parser between threads
that each run their own event loop; an asyncio.Lock belongs to one loop.
Each caller reserves its slot under the lock and sleeps outside it, so
the lock is never held across an await.
"""

import asyncio
import threading
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """
    Enforces a minimum spacing between outbound extraction calls.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            min_interval: Minimum seconds between two calls.
            clock: Monotonic time source (injectable for tests).
            sleep: Async sleep function (injectable for tests).
        """
        if min_interval < 0:
            raise ValueError(f"min_interval must be non-negative, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def last_call(self) -> Optional[float]:
        """Clock reading of the last admitted (or reserved) call, None before the first."""
        with self._lock:
            return self._last_call

    def reserve(self) -> float:
        """
        Claim the next call slot.

        Returns:
            Seconds the caller must wait before making its call.
        """
        with self._lock:
            now = self._clock()
            if self._last_call is None:
                delay = 0.0
            else:
                delay = max(0.0, self._last_call + self.min_interval - now)
            self._last_call = now + delay
            return delay

    async def wait(self) -> float:
        """
        Block until a call is allowed.

        Returns:
            Seconds spent waiting (0.0 when no wait was needed).
        """
        delay = self.reserve()
        if delay > 0:
            await self._sleep(delay)
        return delay

    def reset(self) -> None:
        """Forget the last call so the next one goes through immediately."""
        with self._lock:
            self._last_call = None
