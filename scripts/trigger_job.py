#!/usr/bin/env python3
"""Enqueue a distribution job by name.

Usage:
    python scripts/trigger_job.py daily
    python scripts/trigger_job.py price_change
"""

import sys
from pathlib import Path


# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from jobs.tasks import (  # noqa: E402
    apply_price_change,
    distribute_area_rewards,
    distribute_daily_location_rewards,
    distribute_recommend_area_rewards,
    recheck_vip_tiers,
    recompute_area_levels,
    settle_trade_commissions,
    share_vip_withdraw_fee,
)

JOBS = {
    "daily": distribute_daily_location_rewards,
    "area": distribute_area_rewards,
    "trades": settle_trade_commissions,
    "price_change": apply_price_change,
    "vip": recheck_vip_tiers,
    "area_level": recompute_area_levels,
    "vip_fee": share_vip_withdraw_fee,
    "recommend_area": distribute_recommend_area_rewards,
}


def main(argv: list[str]) -> int:
    if len(argv) != 2 or argv[1] not in JOBS:
        logger.error(f"Usage: trigger_job.py {{{'|'.join(JOBS)}}}")
        return 2

    message = JOBS[argv[1]].send()
    logger.info(f"Enqueued {argv[1]} as message {message.message_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
