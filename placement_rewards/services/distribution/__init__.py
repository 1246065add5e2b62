"""
Distribution services.

Batch passes that compute payouts and mutate the placement ledger.
"""

from placement_rewards.services.distribution.area_level import AreaLevelService
from placement_rewards.services.distribution.area_reward import AreaRewardDistributor
from placement_rewards.services.distribution.engine import DistributionEngine
from placement_rewards.services.distribution.location_reward import LocationRewardDistributor
from placement_rewards.services.distribution.price_change import PriceChangeService
from placement_rewards.services.distribution.recommend_area_reward import RecommendAreaRewardService
from placement_rewards.services.distribution.trade_commission import TradeCommissionService
from placement_rewards.services.distribution.vip_fee_share import VipFeeShareService
from placement_rewards.services.distribution.vip_recheck import VipRecheckService


__all__ = [
    "AreaLevelService",
    "AreaRewardDistributor",
    "DistributionEngine",
    "LocationRewardDistributor",
    "PriceChangeService",
    "RecommendAreaRewardService",
    "TradeCommissionService",
    "VipFeeShareService",
    "VipRecheckService",
]
