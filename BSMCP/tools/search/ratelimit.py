import threading
import time
from collections import deque
from typing import Callable, Deque

from BSMCP.services.shared.errors import RateLimitError

WINDOW_SECONDS = 60.0


class RateLimiter:
    """Rolling one-minute request window, checked before each upstream call."""

    def __init__(self, limit_per_minute: int, clock: Callable[[], float] = time.monotonic):
        if limit_per_minute < 1:
            raise ValueError("limit_per_minute must be at least 1")
        self.limit_per_minute = limit_per_minute
        self.clock = clock
        self._admitted: Deque[float] = deque()
        self._lock = threading.Lock()

    def _expire(self, now: float) -> None:
        while self._admitted and now - self._admitted[0] >= WINDOW_SECONDS:
            self._admitted.popleft()

    def acquire(self) -> None:
        """Admit one request or fail fast.

        Raises:
            RateLimitError: with ``local=True`` once the window is full.
        """
        with self._lock:
            now = self.clock()
            self._expire(now)
            if len(self._admitted) >= self.limit_per_minute:
                raise RateLimitError(
                    f"Rate limit exceeded: {self.limit_per_minute} requests per minute",
                    local=True,
                )
            self._admitted.append(now)

    def remaining(self) -> int:
        with self._lock:
            self._expire(self.clock())
            return self.limit_per_minute - len(self._admitted)
