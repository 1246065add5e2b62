"""
Price change task.

Applies the oldest pending secondary currency price change. Triggered
after an administrator updates ``b_price``.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_procedure
from jobs.broker import SETTLEMENT_QUEUE, broker  # noqa: F401


@dramatiq.actor(queue_name=SETTLEMENT_QUEUE, max_retries=3, time_limit=1_800_000)  # 30 min
def apply_price_change() -> None:
    """Run the price change adjustment."""
    logger.info("Starting price change adjustment...")
    try:
        run_procedure("price_change", lambda engine: engine.apply_price_change())
    except Exception as e:
        logger.exception(f"Price change adjustment failed: {e}")
        raise
