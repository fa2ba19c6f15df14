"""
In-memory fixed-window rate limiter keyed by scope and client.
"""

from typing import Dict, Any, Optional
import asyncio
import logging
import time

from passport.utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window request counter.

    Keys are free-form, conventionally "{scope}:{client_ip}". A window opens on
    the first request for a key and resets once `window` seconds have elapsed.
    """

    def __init__(self, limit: int = 100, window: int = 3600):
        self.limit = limit
        self.window = window
        self.request_counts: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str, limit: Optional[int] = None, window: Optional[int] = None) -> int:
        """
        Count one request against `key`.

        Returns:
            Requests remaining in the current window

        Raises:
            RateLimitExceededError: If the window is already full
        """
        limit = self.limit if limit is None else limit
        window = self.window if window is None else window
        current_time = time.time()

        async with self._lock:
            self._clean_expired(current_time)

            client_data = self.request_counts.setdefault(
                key, {"count": 0, "window_start": current_time, "window": window}
            )

            if current_time - client_data["window_start"] > window:
                client_data["count"] = 0
                client_data["window_start"] = current_time

            if client_data["count"] >= limit:
                retry_after = max(1, int(window - (current_time - client_data["window_start"])))
                logger.warning(f"Rate limit exceeded for {key}", extra={"key": key, "limit": limit})
                raise RateLimitExceededError(retry_after)

            client_data["count"] += 1
            return limit - client_data["count"]

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key when none is given."""
        if key is None:
            self.request_counts.clear()
        else:
            self.request_counts.pop(key, None)

    def _clean_expired(self, current_time: float) -> None:
        expired = [
            key for key, data in self.request_counts.items()
            if current_time - data["window_start"] > data["window"] * 2
        ]
        for key in expired:
            del self.request_counts[key]
