from .cache import ResultCache
from .rate_limiter import FixedWindowRateLimiter, RateLimitDecision
from .store import InMemoryStore, KeyValueStore, RedisStore, create_store

__all__ = [
    'FixedWindowRateLimiter',
    'InMemoryStore',
    'KeyValueStore',
    'RateLimitDecision',
    'RedisStore',
    'ResultCache',
    'create_store',
]
