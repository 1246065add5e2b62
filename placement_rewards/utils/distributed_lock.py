"""
Distributed lock.

Redis-backed mutual exclusion for scheduled distribution runs. The key
expires so a crashed worker cannot block the next run forever, and a
keep-alive task pushes the expiry forward while the holder still runs.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

# Release only when the stored token is ours
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

# Reset the TTL only when the stored token is ours
_EXTEND_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("expire", KEYS[1], ARGV[2])
end
return 0
"""


class LockNotAcquiredError(Exception):
    """Raised when another worker already holds the lock."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Lock {key} is held by another worker")
        self.key = key


class DistributedLock:
    """
    Lock keyed in Redis with SET NX and an expiry.

    Guarantees a single writer per distribution procedure so that two
    workers never walk the same ledger window concurrently, however long
    a pass takes.
    """

    def __init__(self, redis_client: Redis, prefix: str = "lock:") -> None:
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(
        self, key: str, timeout: int = 60, renew_interval: float | None = None
    ) -> AsyncIterator[str]:
        """
        Acquire lock for the duration of the context.

        Args:
            key: Lock name
            timeout: Lock TTL in seconds
            renew_interval: Seconds between TTL renewals, timeout / 3 when None

        Yields:
            Lock token

        Raises:
            LockNotAcquiredError: If the lock is held elsewhere
        """
        full_key = f"{self.prefix}{key}"
        token = uuid.uuid4().hex

        acquired = await self.redis_client.set(full_key, token, nx=True, ex=timeout)
        if not acquired:
            logger.warning(f"Lock {full_key} already held, skipping run")
            raise LockNotAcquiredError(full_key)

        logger.debug(f"Acquired lock {full_key}")
        keeper = asyncio.create_task(
            self._keep_alive(full_key, token, timeout, renew_interval or timeout / 3)
        )
        try:
            yield token
        finally:
            keeper.cancel()
            with suppress(asyncio.CancelledError):
                await keeper
            await self.redis_client.eval(_RELEASE_SCRIPT, 1, full_key, token)
            logger.debug(f"Released lock {full_key}")

    async def _keep_alive(
        self, full_key: str, token: str, timeout: int, interval: float
    ) -> None:
        """Reset the TTL every ``interval`` seconds until cancelled or lost."""
        while True:
            await asyncio.sleep(interval)
            try:
                extended = await self.redis_client.eval(
                    _EXTEND_SCRIPT, 1, full_key, token, timeout
                )
            except RedisError as e:
                logger.warning(f"Failed to renew lock {full_key}: {e}")
                continue
            if not extended:
                logger.error(f"Lock {full_key} expired before the run finished")
                return
