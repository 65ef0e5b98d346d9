"""
In-process TTL cache for read-mostly catalog collections
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Holds the last stored value per key together with the time it was stored.

    ``get`` reports whether the value is still fresh instead of hiding stale
    entries, so callers (and tests) control time through the ``now`` and
    ``timestamp`` arguments rather than by patching the clock.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, now: Optional[float] = None) -> Tuple[Optional[Any], bool]:
        """Return (value, is_fresh). A missing key gives (None, False)."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None, False

        value, stored_at = entry
        if now is None:
            now = self._clock()
        return value, (now - stored_at) < self.ttl_seconds

    def put(self, key: str, value: Any, timestamp: Optional[float] = None) -> None:
        if timestamp is None:
            timestamp = self._clock()
        with self._lock:
            self._entries[key] = (value, timestamp)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
