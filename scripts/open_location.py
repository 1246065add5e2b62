#!/usr/bin/env python3
"""Open a placement slot for a user.

Usage:
    python scripts/open_location.py 42 1000 --sponsor 7 --top 15 --top-num 2

Registers the user under the sponsor first when the user has no referral
record yet. The amount is given in whole units.
"""

import argparse
import asyncio
import sys
from pathlib import Path


# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from placement_rewards.config.database import async_session_maker  # noqa: E402
from placement_rewards.config.logging import setup_logging  # noqa: E402
from placement_rewards.repositories.ledger import Ledger  # noqa: E402
from placement_rewards.services.placement import PlacementOpener  # noqa: E402
from placement_rewards.services.referral import ReferralGraph  # noqa: E402
from placement_rewards.utils.formatters import format_amount, to_micro  # noqa: E402


async def open_location(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        ledger = Ledger(session)
        graph = ReferralGraph(ledger.recommends)

        if await ledger.recommends.get_by_user(args.user_id) is None:
            async with ledger.transaction():
                record = await graph.register(args.user_id, args.sponsor)
            logger.info(f"Registered user {args.user_id} at {record.path}")

        location = await PlacementOpener(ledger).open_location(
            args.user_id,
            to_micro(args.amount),
            args.out_rate,
            top=args.top,
            top_num=args.top_num,
        )

    logger.info(
        f"Location {location.id} opened: principal {format_amount(location.usdt)}, "
        f"capacity {format_amount(location.current_max)}"
    )
    return 0


def main() -> int:
    setup_logging()

    parser = argparse.ArgumentParser(description="Open a placement slot")
    parser.add_argument("user_id", type=int, help="Slot owner")
    parser.add_argument("amount", type=str, help="Principal in whole units")
    parser.add_argument(
        "--out-rate", type=int, default=300, help="Capacity as percent of principal (default: 300)"
    )
    parser.add_argument("--sponsor", type=int, default=None, help="Sponsor of a new user")
    parser.add_argument("--top", type=int, default=0, help="Parent slot in the placement tree")
    parser.add_argument("--top-num", type=int, default=0, help="Branch of the parent slot (1..3)")
    args = parser.parse_args()

    try:
        return asyncio.run(open_location(args))
    except ValueError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
