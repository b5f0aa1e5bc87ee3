#!/usr/bin/env python3
"""
Result cache keyed by the full request signature.

Entries are fresh for ``ttl_seconds`` and short-circuit the provider chain
while fresh. They stay readable as a last-resort fallback until
``stale_ttl_seconds``. The cache holds at most ``max_entries`` entries; a
write beyond that evicts the oldest entries across all keys.
"""

import hashlib
import json
import logging
import time
from typing import Any, Dict, Optional

from ...shared.types import FeedResponse
from .store import Clock, KeyValueStore

logger = logging.getLogger(__name__)

CACHE_PREFIX = 'feedcache:'


class ResultCache:
    """Bounded, two-tier TTL cache of successful feed responses."""

    def __init__(self,
                 store: KeyValueStore,
                 ttl_seconds: float = 300,
                 stale_ttl_seconds: float = 3600,
                 max_entries: int = 200,
                 clock: Optional[Clock] = None,
                 prefix: str = CACHE_PREFIX):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.stale_ttl_seconds = max(stale_ttl_seconds, ttl_seconds)
        self.max_entries = max_entries
        self.prefix = prefix
        self._clock = clock or time.time

    def key_for(self, signature: str) -> str:
        return self.prefix + hashlib.sha1(signature.encode('utf-8')).hexdigest()

    async def _read(self, signature: str) -> Optional[Dict[str, Any]]:
        raw = await self.store.get(self.key_for(signature))
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
            float(entry['written_at'])
            return entry
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry: {e}")
            await self.store.delete(self.key_for(signature))
            return None

    async def _lookup(self, signature: str, max_age: float) -> Optional[FeedResponse]:
        entry = await self._read(signature)
        if entry is None:
            return None
        age = self._clock() - float(entry['written_at'])
        if age >= max_age:
            return None
        return FeedResponse.from_dict(entry['response'])

    async def get(self, signature: str) -> Optional[FeedResponse]:
        """A response written less than ``ttl_seconds`` ago."""
        return await self._lookup(signature, self.ttl_seconds)

    async def get_stale(self, signature: str) -> Optional[FeedResponse]:
        """A response written less than ``stale_ttl_seconds`` ago."""
        return await self._lookup(signature, self.stale_ttl_seconds)

    async def set(self, signature: str, response: FeedResponse) -> None:
        """Store a response and evict the oldest entries beyond capacity."""
        entry = {
            'written_at': self._clock(),
            'response': response.to_dict(),
        }
        await self.store.set(self.key_for(signature), json.dumps(entry), ttl_seconds=self.stale_ttl_seconds)
        await self._evict()

    async def _evict(self) -> None:
        keys = await self.store.scan(self.prefix)
        if len(keys) <= self.max_entries:
            return

        ages = []
        for key in keys:
            raw = await self.store.get(key)
            try:
                written_at = float(json.loads(raw)['written_at']) if raw else float('-inf')
            except (ValueError, KeyError, TypeError):
                written_at = float('-inf')
            ages.append((written_at, key))

        ages.sort()
        overflow = len(ages) - self.max_entries
        for _, key in ages[:overflow]:
            await self.store.delete(key)
        logger.debug(f"Cache evicted {overflow} oldest entries")
