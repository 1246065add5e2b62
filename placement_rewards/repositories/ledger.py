"""
Ledger unit of work.

Groups every repository over one session and provides the atomic
transaction scope used by the distribution passes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.repositories.config_repository import (
    ConfigRepository,
    PriceChangeRepository,
)
from placement_rewards.repositories.location_repository import LocationRepository
from placement_rewards.repositories.referral_repository import (
    UserAreaRepository,
    UserRecommendRepository,
)
from placement_rewards.repositories.reward_repository import RewardRepository
from placement_rewards.repositories.trade_repository import TradeRepository
from placement_rewards.repositories.user_repository import (
    UserBalanceRepository,
    UserInfoRepository,
)


class Ledger:
    """
    Placement and reward ledger over a single AsyncSession.

    Usage:
        async with async_session_maker() as session:
            ledger = Ledger(session)
            async with ledger.transaction():
                await ledger.locations.update_capacity_and_status(...)
                await ledger.rewards.append_reward(...)
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.locations = LocationRepository(session)
        self.recommends = UserRecommendRepository(session)
        self.areas = UserAreaRepository(session)
        self.user_infos = UserInfoRepository(session)
        self.balances = UserBalanceRepository(session)
        self.rewards = RewardRepository(session)
        self.configs = ConfigRepository(session)
        self.price_changes = PriceChangeRepository(session)
        self.trades = TradeRepository(session)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Ledger"]:
        """
        All-or-nothing scope.

        Commits when the block exits cleanly, rolls back and re-raises
        otherwise.
        """
        # Reads done before the scope leave an implicit transaction open
        if self.session.in_transaction():
            await self.session.commit()
        try:
            yield self
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.debug(f"Ledger transaction rolled back: {e}")
            raise
