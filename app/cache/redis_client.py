"""
Redis client - per-user checkout locks.
Challenge: Two concurrent checkouts for one user must not both charge the same cart.
Design: SET NX EX to acquire, compare-and-delete Lua script to release, so a lock
that expired and was re-taken by another request is never released by us.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from redis.asyncio import Redis
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import get_settings
from app.core.errors import CheckoutInProgress, LockUnavailable

logger = logging.getLogger(__name__)

_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

# Shared async Redis client (connection pool managed by redis-py)
_redis: Redis | None = None


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(
            get_settings().redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


class UserLock:
    """Exclusive lock per user id, held for the duration of a checkout."""

    def __init__(self, redis: Redis, ttl_seconds: int, prefix: str = "checkout"):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, user_id: int) -> str:
        return f"{self.prefix}:user:{user_id}:lock"

    @redis_retry()
    async def acquire(self, user_id: int, token: str) -> bool:
        return bool(await self.redis.set(self._key(user_id), token, nx=True, ex=self.ttl_seconds))

    @redis_retry()
    async def release(self, user_id: int, token: str) -> bool:
        return bool(await self.redis.eval(_RELEASE_LUA, 1, self._key(user_id), token))

    @asynccontextmanager
    async def hold(self, user_id: int) -> AsyncIterator[None]:
        token = uuid4().hex
        try:
            acquired = await self.acquire(user_id, token)
        except RedisError as exc:
            logger.error("Could not take %s: %s", self._key(user_id), exc)
            raise LockUnavailable() from exc
        if not acquired:
            raise CheckoutInProgress()
        logger.debug("Acquired %s", self._key(user_id))
        try:
            yield
        finally:
            try:
                released = await self.release(user_id, token)
            except RedisError:
                logger.exception("Failed to release %s; it expires in %ss", self._key(user_id), self.ttl_seconds)
            else:
                if not released:
                    logger.warning("%s expired before the checkout finished", self._key(user_id))


def get_checkout_lock() -> UserLock:
    """FastAPI dependency; overridden in tests."""
    return UserLock(get_redis(), ttl_seconds=get_settings().checkout_lock_ttl_seconds)
