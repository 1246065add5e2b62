"""
Trade settlement task.

Claims settled trades and pays their commission up the sponsor chain.
Trades are claimed one by one, so a retried run never pays a trade twice.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_procedure
from jobs.broker import SETTLEMENT_QUEUE, broker  # noqa: F401


@dramatiq.actor(queue_name=SETTLEMENT_QUEUE, max_retries=3, time_limit=600_000)  # 10 min
def settle_trade_commissions() -> None:
    """Run the trade commission cascade."""
    logger.info("Starting trade commission settlement...")
    try:
        run_procedure("trade_commission", lambda engine: engine.settle_trades())
    except Exception as e:
        logger.exception(f"Trade commission settlement failed: {e}")
        raise
