"""
VIP recheck tasks.

Nightly recompute of VIP tiers and user area levels.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_procedure
from jobs.broker import MAINTENANCE_QUEUE, broker  # noqa: F401


@dramatiq.actor(queue_name=MAINTENANCE_QUEUE, max_retries=3, time_limit=1_800_000)  # 30 min
def recheck_vip_tiers() -> None:
    """Recompute VIP tiers of unlocked users."""
    logger.info("Starting VIP recheck...")
    try:
        run_procedure("vip_recheck", lambda engine: engine.recheck_vip())
    except Exception as e:
        logger.exception(f"VIP recheck failed: {e}")
        raise


@dramatiq.actor(queue_name=MAINTENANCE_QUEUE, max_retries=3, time_limit=1_800_000)
def recompute_area_levels() -> None:
    """Raise user area levels from branch volumes."""
    logger.info("Starting area level recompute...")
    try:
        run_procedure("area_level", lambda engine: engine.recompute_area_levels())
    except Exception as e:
        logger.exception(f"Area level recompute failed: {e}")
        raise
