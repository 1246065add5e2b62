"""
Async runner for dramatiq tasks.

Runs one distribution procedure under a distributed lock with a session
bound to the worker's own event loop.
"""

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from loguru import logger
from redis.asyncio import Redis

from placement_rewards.config.database import create_engine, create_session_maker
from placement_rewards.config.settings import settings
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.distribution.engine import DistributionEngine
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.distributed_lock import DistributedLock, LockNotAcquiredError

Procedure = Callable[[DistributionEngine], Awaitable[RunReport]]


@asynccontextmanager
async def create_local_session():
    """
    Create a database session for the current event loop.

    Uses a NullPool engine so no connection outlives the loop that
    asyncio.run creates for each message.

    Yields:
        AsyncSession bound to the current event loop
    """
    local_engine = create_engine(pooled=False)
    local_session_maker = create_session_maker(local_engine)
    try:
        async with local_session_maker() as session:
            yield session
    finally:
        await local_engine.dispose()


async def run_procedure_async(lock_key: str, procedure: Procedure) -> RunReport | None:
    """
    Run a procedure once across all workers.

    Args:
        lock_key: Distributed lock name
        procedure: Coroutine function taking the engine

    Returns:
        Run report, None when another worker holds the lock
    """
    redis_client = Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )
    lock = DistributedLock(redis_client=redis_client)
    try:
        async with lock.lock(lock_key, timeout=settings.job_lock_timeout_seconds):
            async with create_local_session() as session:
                engine = DistributionEngine(Ledger(session))
                return await procedure(engine)
    except LockNotAcquiredError:
        return None
    finally:
        await redis_client.aclose()


def run_procedure(lock_key: str, procedure: Procedure) -> RunReport | None:
    """
    Synchronous entry point for actors.

    Args:
        lock_key: Distributed lock name
        procedure: Coroutine function taking the engine

    Returns:
        Run report, None when skipped
    """
    report = asyncio.run(run_procedure_async(lock_key, procedure))
    if report is None:
        logger.warning(f"{lock_key} skipped: already running elsewhere")
        return None

    logger.info(report.summary())
    if report.skipped:
        logger.warning(
            f"{lock_key} skipped units by reason: {report.skipped_reasons()}"
        )
    return report
