"""
Distribution engine.

Single entry point the scheduler calls. Owns no state of its own; every
procedure is a pass over the ledger it was built with.
"""

from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.distribution.area_level import AreaLevelService
from placement_rewards.services.distribution.area_reward import AreaRewardDistributor
from placement_rewards.services.distribution.location_reward import LocationRewardDistributor
from placement_rewards.services.distribution.price_change import PriceChangeService
from placement_rewards.services.distribution.recommend_area_reward import RecommendAreaRewardService
from placement_rewards.services.distribution.trade_commission import TradeCommissionService
from placement_rewards.services.distribution.vip_fee_share import VipFeeShareService
from placement_rewards.services.distribution.vip_recheck import VipRecheckService
from placement_rewards.services.run_report import RunReport


class DistributionEngine:
    """Facade over the distribution passes."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        """
        Initialize engine.

        Args:
            ledger: Placement and reward ledger
            max_depth: Stop-cascade hop bound, settings value when None
        """
        self.ledger = ledger
        self.max_depth = max_depth

    async def run_daily_location_reward(self) -> RunReport:
        return await LocationRewardDistributor(self.ledger, self.max_depth).run()

    async def run_area_reward(self) -> RunReport:
        return await AreaRewardDistributor(self.ledger, self.max_depth).run()

    async def run_recommend_area_reward(self) -> RunReport:
        return await RecommendAreaRewardService(self.ledger, self.max_depth).run()

    async def share_vip_fee(self) -> RunReport:
        return await VipFeeShareService(self.ledger, self.max_depth).run()

    async def run_daily(self) -> RunReport:
        """Daily tick: location yield and commissions, then area rewards."""
        report = RunReport(procedure="daily")
        report.merge(await self.run_daily_location_reward())
        report.merge(await self.run_area_reward())
        return report

    async def settle_trades(self) -> RunReport:
        return await TradeCommissionService(self.ledger).run()

    async def apply_price_change(self) -> RunReport:
        return await PriceChangeService(self.ledger, self.max_depth).run()

    async def recheck_vip(self) -> RunReport:
        return await VipRecheckService(self.ledger).run()

    async def recompute_area_levels(self) -> RunReport:
        return await AreaLevelService(self.ledger).run()
