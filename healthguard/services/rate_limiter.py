"""Per-client sliding-window limit on analysis requests."""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from ..config import settings

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allows at most ``max_requests`` per client within ``window_seconds``.

    Clients that have been idle for a whole window are forgotten, so the
    number of tracked clients stays bounded by recent traffic.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_requests = max_requests or settings.RATE_LIMIT_REQUESTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def allow(self, client_id: str) -> bool:
        """Record a request from ``client_id`` unless it is over the limit.

        Returns:
            True if the request is allowed, False if it must be refused
        """
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            recent = [t for t in self._hits.get(client_id, []) if t > window_start]
            if len(recent) >= self.max_requests:
                self._hits[client_id] = recent
                logger.warning(f"Rate limit exceeded for {client_id}")
                return False

            recent.append(now)
            self._hits[client_id] = recent
            return True

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug(f"Forgot {len(idle)} idle clients")

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        """Forget every client."""
        with self._lock:
            self._hits.clear()
            self._last_sweep = self._clock()
