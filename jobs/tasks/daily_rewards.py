"""
Daily rewards task.

Credits running placement slots with their daily yield, pays sponsor
commissions, then distributes area tier rewards and the sponsor pool.
Runs once per distribution tick.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_procedure
from jobs.broker import DISTRIBUTION_QUEUE, broker  # noqa: F401


# Not retried: running slots would be credited twice
@dramatiq.actor(queue_name=DISTRIBUTION_QUEUE, max_retries=0, time_limit=3_600_000)  # 1 hour
def distribute_daily_location_rewards() -> None:
    """Run the daily location reward pass."""
    logger.info("Starting daily location reward distribution...")
    try:
        run_procedure(
            "daily_location_reward",
            lambda engine: engine.run_daily_location_reward(),
        )
    except Exception as e:
        logger.exception(f"Daily location reward distribution failed: {e}")
        raise


@dramatiq.actor(queue_name=DISTRIBUTION_QUEUE, max_retries=0, time_limit=3_600_000)
def distribute_area_rewards() -> None:
    """Run the area reward pass and the top-four sponsor pool."""
    logger.info("Starting area reward distribution...")
    try:
        run_procedure("area_reward", lambda engine: engine.run_area_reward())
    except Exception as e:
        logger.exception(f"Area reward distribution failed: {e}")
        raise
