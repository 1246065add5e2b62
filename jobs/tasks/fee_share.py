"""
Fee share tasks.

Daily payouts funded by platform fees: today's withdraw fee shared by VIP
tiers, and yesterday's placement volume paid to recommend area levels.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_procedure
from jobs.broker import DISTRIBUTION_QUEUE, broker  # noqa: F401


# Not retried: a partial run would pay the first members twice
@dramatiq.actor(queue_name=DISTRIBUTION_QUEUE, max_retries=0, time_limit=3_600_000)  # 1 hour
def share_vip_withdraw_fee() -> None:
    """Share today's withdraw fee across VIP tiers 1 to 3."""
    logger.info("Starting VIP fee share...")
    try:
        run_procedure("vip_fee_share", lambda engine: engine.share_vip_fee())
    except Exception as e:
        logger.exception(f"VIP fee share failed: {e}")
        raise


@dramatiq.actor(queue_name=DISTRIBUTION_QUEUE, max_retries=0, time_limit=3_600_000)
def distribute_recommend_area_rewards() -> None:
    """Pay recommend area levels from yesterday's placement volume."""
    logger.info("Starting recommend area reward distribution...")
    try:
        run_procedure(
            "recommend_area_reward",
            lambda engine: engine.run_recommend_area_reward(),
        )
    except Exception as e:
        logger.exception(f"Recommend area reward distribution failed: {e}")
        raise
