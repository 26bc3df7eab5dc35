from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter

from garmin_mcp.core.config import settings


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    wait_seconds: int = 0


# Moving-window limit on webhook deliveries, keyed by client IP
class WebhookRateLimiter:
    def __init__(self, max_requests: int, window_seconds: int, storage_uri: str = "memory://"):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._item = RateLimitItemPerSecond(max_requests, window_seconds, namespace="webhook")
        # memory:// expires idle keys itself; redis:// shares the window across workers
        self._limiter = MovingWindowRateLimiter(storage_from_string(storage_uri))

    def check(self, key: str) -> RateLimitDecision:
        if self._limiter.hit(self._item, key):
            return RateLimitDecision(allowed=True, wait_seconds=0)

        stats = self._limiter.get_window_stats(self._item, key)
        wait_s = max(0, int(stats.reset_time - time.time()))
        return RateLimitDecision(allowed=False, wait_seconds=wait_s)


_singleton: Optional[WebhookRateLimiter] = None


def get_webhook_rate_limiter() -> WebhookRateLimiter:
    global _singleton
    if _singleton is not None:
        return _singleton

    _singleton = WebhookRateLimiter(
        max_requests=settings.WEBHOOK_RATE_LIMIT_MAX,
        window_seconds=settings.WEBHOOK_RATE_LIMIT_WINDOW_SECONDS,
        storage_uri=settings.WEBHOOK_RATE_LIMIT_STORAGE_URI,
    )
    return _singleton
