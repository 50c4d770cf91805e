# backend/app/services/rate_limiter.py
"""
Sliding-window rate limiter for outbound API calls.

Each upstream API (price provider, chain-data provider) owns its own
RateLimiter instance; instances never share state.

Algorithm:
    A call is admitted when fewer than `max_calls` calls were admitted
    within the trailing `window`. Admitted calls are recorded by timestamp;
    denied calls are not recorded, so a burst of denials does not extend
    the lockout.

    Old timestamps are pruned whenever the window looks full, and at least
    every `cleanup_interval` (window / 10, never under 1 second), which keeps
    the timestamp list bounded by roughly `max_calls`.

Usage:
    from app.services.rate_limiter import RateLimiter

    limiter = RateLimiter(max_calls=10, window=1.0, name="coingecko")

    limiter.allow()            # raises RateLimitError when exhausted
    if limiter.try_allow():    # non-raising variant
        ...
"""

import logging
import threading
import time
from bisect import bisect_left
from collections import deque
from typing import Callable

from app.services.constants import (
    DEFAULT_RATE_LIMIT_MAX_CALLS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    MIN_RATE_LIMIT_CLEANUP_SECONDS,
)
from app.services.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Thread-safe sliding-window rate limiter.

    Attributes:
        name: Identifier used in logs and RateLimitError messages
        max_calls: Maximum admitted calls per window (at least 1)
        window: Window length in seconds (positive)
        cleanup_interval: Seconds between opportunistic full sweeps
    """

    def __init__(
            self,
            max_calls: int = DEFAULT_RATE_LIMIT_MAX_CALLS,
            window: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
            name: str = "rate-limiter",
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls < 1:
            max_calls = 1
        if window <= 0:
            window = DEFAULT_RATE_LIMIT_WINDOW_SECONDS

        self.name = name
        self.max_calls = max_calls
        self.window = float(window)
        self.cleanup_interval = max(self.window / 10, MIN_RATE_LIMIT_CLEANUP_SECONDS)

        self._clock = clock
        self._calls: deque[float] = deque()
        self._last_cleanup = clock()
        self._lock = threading.Lock()

        logger.debug(
            f"RateLimiter '{name}' initialized: "
            f"max_calls={self.max_calls}, window={self.window}s"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def allow(self) -> None:
        """
        Admit one call or raise.

        Raises:
            RateLimitError: The window is full. The call is not recorded.
        """
        with self._lock:
            now = self._clock()

            # Stale entries only overcount, so pruning can wait until the
            # window looks full or the sweep interval has passed
            if (len(self._calls) >= self.max_calls
                    or now - self._last_cleanup >= self.cleanup_interval):
                self._prune(now)
                self._last_cleanup = now

            if len(self._calls) >= self.max_calls:
                retry_after = self._seconds_until_slot(now)
                logger.debug(
                    f"RateLimiter '{self.name}' denied call: "
                    f"{len(self._calls)}/{self.max_calls} in window"
                )
                raise RateLimitError(self.name, retry_after=retry_after)

            self._calls.append(now)

    def try_allow(self) -> bool:
        """Admit one call, returning False instead of raising when denied."""
        try:
            self.allow()
        except RateLimitError:
            return False
        return True

    def current_count(self) -> int:
        """Number of admitted calls inside the current window."""
        with self._lock:
            self._prune(self._clock())
            return len(self._calls)

    def reset(self) -> None:
        """Forget all recorded calls."""
        with self._lock:
            self._calls.clear()
            self._last_cleanup = self._clock()

    # =========================================================================
    # PRIVATE METHODS (call with the lock held)
    # =========================================================================

    def _prune(self, now: float) -> None:
        """Drop timestamps older than the window ([now - window, now] is kept)."""
        cutoff = now - self.window
        if self._calls and self._calls[0] < cutoff:
            # deque is sorted; find the first timestamp inside the window
            keep_from = bisect_left(self._calls, cutoff)
            for _ in range(keep_from):
                self._calls.popleft()

    def _seconds_until_slot(self, now: float) -> int:
        """Whole seconds until the oldest recorded call leaves the window."""
        if not self._calls:
            return 0
        remaining = self._calls[0] + self.window - now
        return max(1, int(remaining + 0.999))
