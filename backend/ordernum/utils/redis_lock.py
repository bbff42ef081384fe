"""Redis-based distributed locking utilities."""

from collections.abc import Generator
from contextlib import contextmanager
from uuid import uuid4

import redis
import structlog

from ordernum.utils.redis import get_redis_client

logger = structlog.get_logger(__name__)

# Delete the key only if it still holds our token (the TTL may have expired and
# another holder taken the lock meanwhile)
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class LockUnavailable(Exception):
    """Raised when the lock is held by someone else."""

    pass


@contextmanager
def RedisLock(
    key: str,
    ttl: int = 60,
    *,
    client: redis.Redis | None = None,
) -> Generator[None, None, None]:
    """Distributed lock using Redis SET NX with TTL.

    Usage:
        try:
            with RedisLock("order-numbers:backfill", ttl=3600):
                await reconciler.run()
        except LockUnavailable:
            logger.warning("Backfill already running")

    Args:
        key: Redis key for the lock (will be prefixed with "RedisLock:")
        ttl: Time-to-live in seconds; the lock frees itself if the holder dies
        client: Redis client, defaults to the shared one

    Raises:
        LockUnavailable: If another holder has the lock
    """
    redis_client = client or get_redis_client()
    full_key = f"RedisLock:{key}"
    token = uuid4().hex

    if not redis_client.set(full_key, token, nx=True, ex=ttl):
        raise LockUnavailable(f"Could not acquire lock: {full_key}")

    logger.debug("Lock acquired", key=full_key, ttl=ttl)
    try:
        yield
    finally:
        redis_client.eval(_RELEASE_SCRIPT, 1, full_key, token)  # type: ignore[no-untyped-call]
        logger.debug("Lock released", key=full_key)
