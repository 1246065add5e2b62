#!/usr/bin/env python3
"""Update reward config values.

Usage:
    python scripts/set_config.py b_price=120 location_reward_rate=10

A change of ``b_price`` records a pending price change and enqueues the
price change job.
"""

import asyncio
import sys
from pathlib import Path


# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from placement_rewards.config.database import async_session_maker  # noqa: E402
from placement_rewards.config.logging import setup_logging  # noqa: E402
from placement_rewards.repositories.ledger import Ledger  # noqa: E402
from placement_rewards.services.config_service import ConfigService  # noqa: E402


async def main(pairs: list[str]) -> int:
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            logger.error(f"Expected key=value, got {pair!r}")
            return 2
        values[key.strip()] = value.strip()

    async with async_session_maker() as session:
        price_change = await ConfigService(Ledger(session)).update_values(values)

    if price_change is not None:
        from jobs.tasks import apply_price_change

        apply_price_change.send()
        logger.info(f"Price change {price_change.id} queued")
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main(sys.argv[1:])))
