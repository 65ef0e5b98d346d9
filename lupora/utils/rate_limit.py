"""
Fixed-window request counters
"""
import threading
import time
from typing import Callable, Dict, Optional, Tuple


class FixedWindowRateLimiter:
    """
    Counts hits per key inside fixed windows of ``window_seconds``.

    A window starts at the first hit for a key and all hits until it ends
    share one counter; the counter resets when the next window starts.
    """

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """
        Record one request for key

        Returns:
            (allowed, retry_after_seconds). retry_after is 0 when allowed.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            started_at, count = self._windows.get(key, (now, 0))
            if now - started_at >= self.window_seconds:
                started_at, count = now, 0

            count += 1
            self._windows[key] = (started_at, count)

            if len(self._windows) > 10000:
                self._prune(now)

        if count > self.limit:
            retry_after = int(started_at + self.window_seconds - now) + 1
            return False, retry_after
        return True, 0

    def _prune(self, now: float) -> None:
        expired = [k for k, (started_at, _) in self._windows.items() if now - started_at >= self.window_seconds]
        for k in expired:
            del self._windows[k]
