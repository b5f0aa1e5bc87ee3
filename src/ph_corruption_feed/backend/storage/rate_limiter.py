#!/usr/bin/env python3
"""
Fixed-window rate limiter.

Requests are counted per client in non-overlapping windows of
``window_seconds``; the counter for a window is created with an expiry of
one window so stale windows clean themselves up.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from ...shared.utils.logging_config import log_warning
from .store import Clock, KeyValueStore

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = 'ratelimit:'


@dataclass
class RateLimitDecision:
    """Outcome of one rate-limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_epoch: int
    retry_after: int = 0
    enforced: bool = True

    @classmethod
    def unlimited(cls) -> 'RateLimitDecision':
        return cls(allowed=True, limit=0, remaining=0, reset_epoch=0, enforced=False)

    def headers(self) -> Dict[str, str]:
        """Standard fixed-window response headers."""
        if not self.enforced:
            return {}
        headers = {
            'X-RateLimit-Limit': str(self.limit),
            'X-RateLimit-Remaining': str(self.remaining),
            'X-RateLimit-Reset': str(self.reset_epoch),
        }
        if not self.allowed:
            headers['Retry-After'] = str(self.retry_after)
        return headers


class FixedWindowRateLimiter:
    """Per-client fixed-window counter on top of a KeyValueStore."""

    def __init__(self,
                 store: KeyValueStore,
                 limit: int = 10,
                 window_seconds: int = 60,
                 enabled: bool = True,
                 clock: Optional[Clock] = None,
                 prefix: str = RATE_LIMIT_PREFIX):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.enabled = enabled
        self.prefix = prefix
        self._clock = clock or time.time

    def _key(self, client_id: str, window_index: int) -> str:
        return f"{self.prefix}{client_id}:{window_index}"

    async def check(self, client_id: Optional[str]) -> RateLimitDecision:
        """Count this request and decide whether it may proceed."""
        if not self.enabled:
            return RateLimitDecision.unlimited()

        client = (client_id or 'anonymous').strip() or 'anonymous'
        now = self._clock()
        window_index = int(now // self.window_seconds)
        reset_epoch = (window_index + 1) * self.window_seconds

        try:
            count = await self.store.incr(self._key(client, window_index), ttl_seconds=self.window_seconds)
        except Exception as e:
            # Store outage: let traffic through rather than fail every request
            log_warning(logger, f"Rate limiter store unavailable, allowing request: {e}")
            return RateLimitDecision.unlimited()

        allowed = count <= self.limit
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_epoch=int(reset_epoch),
            retry_after=0 if allowed else max(1, math.ceil(reset_epoch - now)),
        )
