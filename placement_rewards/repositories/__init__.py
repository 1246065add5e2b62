"""
Repositories.

Data access layer of the placement and reward ledgers.
"""

from placement_rewards.repositories.config_repository import (
    ConfigRepository,
    PriceChangeRepository,
)
from placement_rewards.repositories.ledger import Ledger
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


__all__ = [
    "ConfigRepository",
    "Ledger",
    "LocationRepository",
    "PriceChangeRepository",
    "RewardRepository",
    "TradeRepository",
    "UserAreaRepository",
    "UserBalanceRepository",
    "UserInfoRepository",
    "UserRecommendRepository",
]
