"""Shared Redis client."""

from functools import lru_cache

import redis

from ordernum.config import settings


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Return the shared Redis client (created on first use, reused afterwards)."""
    return redis.from_url(settings.redis_url)  # type: ignore[no-untyped-call]
