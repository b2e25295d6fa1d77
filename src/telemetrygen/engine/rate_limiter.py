"""
Token-bucket rate limiting for a single worker.

The bucket holds at most one token and starts empty: the first token becomes
available one interval after construction, then one per interval. A worker
therefore emits at most ``rate`` batches per second and never bursts.
"""

import time
from collections.abc import Callable

from ..errors import RateLimitWaitCancelled
from .run_state import CancellationToken


class RateLimiter:
    """Blocking token bucket with capacity 1; rate 0 means unlimited."""

    def __init__(
        self,
        rate: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate < 0:
            raise ValueError("rate must not be negative")
        self.rate = rate
        self.interval = 1.0 / rate if rate > 0 else 0.0
        self._clock = clock
        self._sleep = sleep
        self._next_token = clock() + self.interval

    @property
    def unlimited(self) -> bool:
        return self.rate == 0

    def acquire(self, interrupt: CancellationToken | None = None) -> None:
        """
        Block until a token is available and take it.

        Raises:
            RateLimitWaitCancelled: interrupt was cancelled before the token arrived.
        """
        if self.unlimited:
            return
        now = self._clock()
        delay = self._next_token - now
        if delay > 0:
            if interrupt is None:
                self._sleep(delay)
            elif interrupt.wait(delay):
                raise RateLimitWaitCancelled("rate limiter wait cancelled")
        # A full bucket holds one token, so idle time never accumulates credit.
        self._next_token = max(self._next_token, now) + self.interval
