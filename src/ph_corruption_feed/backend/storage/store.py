#!/usr/bin/env python3
"""
Key-value store abstraction shared by the result cache and the rate limiter.

Two interchangeable implementations: an in-process map for single-instance
deployments and Redis for a centrally shared store. Values are strings;
callers serialize their own payloads.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class KeyValueStore(ABC):
    """get / set / increment-with-expiry contract."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        ...

    @abstractmethod
    async def incr(self, key: str, ttl_seconds: float) -> int:
        """Atomically increment a counter; the expiry is set when it is created."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def scan(self, prefix: str) -> List[str]:
        """Keys currently stored under ``prefix``."""

    async def close(self) -> None:
        return None


class InMemoryStore(KeyValueStore):
    """
    Process-local store. Every operation completes under one lock without awaiting.

    Expired keys are dropped when read, and a sweep at most once per
    ``sweep_interval`` seconds drops the ones nobody reads again (old
    rate-limit windows).
    """

    def __init__(self, clock: Optional[Clock] = None, sweep_interval: float = 60.0):
        self._clock = clock or time.time
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self.sweep_interval = sweep_interval
        self._next_sweep = self._clock() + sweep_interval

    def _live(self, key: str, now: float) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and now >= expires_at:
            del self._data[key]
            return None
        return entry

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        expired = [key for key, (_, expires_at) in self._data.items()
                   if expires_at is not None and now >= expires_at]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self.sweep_interval
        if expired:
            logger.debug(f"Swept {len(expired)} expired keys")

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live(key, self._clock())
            return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            expires_at = now + ttl_seconds if ttl_seconds else None
            self._data[key] = (value, expires_at)

    async def incr(self, key: str, ttl_seconds: float) -> int:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            entry = self._live(key, now)
            if entry is None:
                self._data[key] = ('1', now + ttl_seconds)
                return 1
            count = int(entry[0]) + 1
            self._data[key] = (str(count), entry[1])
            return count

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    async def scan(self, prefix: str) -> List[str]:
        with self._lock:
            now = self._clock()
            return [key for key in list(self._data) if key.startswith(prefix) and self._live(key, now)]

    def __len__(self) -> int:
        return len(self._data)


class RedisStore(KeyValueStore):
    """Redis-backed store for deployments running more than one instance."""

    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> 'RedisStore':
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        if ttl_seconds:
            await self.client.set(key, value, px=int(ttl_seconds * 1000))
        else:
            await self.client.set(key, value)

    async def incr(self, key: str, ttl_seconds: float) -> int:
        count = await self.client.incr(key)
        if count == 1:
            await self.client.pexpire(key, int(ttl_seconds * 1000))
        return int(count)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def scan(self, prefix: str) -> List[str]:
        return [key async for key in self.client.scan_iter(match=f"{prefix}*")]

    async def close(self) -> None:
        await self.client.aclose()


def create_store(backend: str = 'memory', redis_url: Optional[str] = None) -> KeyValueStore:
    """Build the configured store; Redis without a URL falls back to memory."""
    if backend == 'redis':
        if redis_url:
            logger.info("Using Redis store for cache and rate limits")
            return RedisStore.from_url(redis_url)
        logger.warning("store.backend is redis but no REDIS_URL is set; using in-memory store")
    return InMemoryStore()
