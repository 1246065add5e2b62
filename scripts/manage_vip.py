#!/usr/bin/env python3
"""Lock or release a user's VIP tier.

Usage:
    python scripts/manage_vip.py assign 42 5
    python scripts/manage_vip.py release 42

A locked tier is skipped by the nightly VIP recompute until released.
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
from placement_rewards.services.distribution import VipRecheckService  # noqa: E402
from placement_rewards.utils.exceptions import LookupMissError  # noqa: E402


async def manage_vip(args: argparse.Namespace) -> None:
    async with async_session_maker() as session:
        service = VipRecheckService(Ledger(session))
        if args.action == "assign":
            await service.assign_manual_vip(args.user_id, args.vip)
        else:
            await service.release_manual_vip(args.user_id)


def main() -> int:
    setup_logging()

    parser = argparse.ArgumentParser(description="Manual VIP tier override")
    subparsers = parser.add_subparsers(dest="action", required=True)
    assign = subparsers.add_parser("assign", help="Set and lock a tier")
    assign.add_argument("user_id", type=int)
    assign.add_argument("vip", type=int)
    release = subparsers.add_parser("release", help="Hand the tier back to the recompute")
    release.add_argument("user_id", type=int)
    args = parser.parse_args()

    try:
        asyncio.run(manage_vip(args))
    except (ValueError, LookupMissError) as e:
        logger.error(str(e))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
