"""
Fixed-window rate limiting (simple in-memory, per client address).
"""
import threading
import time


class RateLimiter:
    """Allow `limit` hits per key in each `window`-second window."""

    def __init__(self, limit: int, window: float, clock=time.monotonic):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._windows = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Count one request for key. Returns False when the key is over budget."""
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window:
                started, count = now, 0
            if count >= self.limit:
                self._windows[key] = (started, count)
                return False
            self._windows[key] = (started, count + 1)
            if len(self._windows) > 10000:
                self._prune(now)
            return True

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window]
        for k in expired:
            del self._windows[k]
