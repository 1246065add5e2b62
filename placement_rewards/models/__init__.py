"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from placement_rewards.models.base import Base
from placement_rewards.models.config import Config, PriceChange
from placement_rewards.models.enums import (
    LocationStatus,
    PriceChangeStatus,
    RewardReason,
    RewardType,
    TradeStatus,
)
from placement_rewards.models.location import Location
from placement_rewards.models.referral import UserArea, UserRecommend
from placement_rewards.models.reward import Reward
from placement_rewards.models.trade import Trade
from placement_rewards.models.user import UserBalance, UserInfo


__all__ = [
    "Base",
    "Config",
    "Location",
    "LocationStatus",
    "PriceChange",
    "PriceChangeStatus",
    "Reward",
    "RewardReason",
    "RewardType",
    "Trade",
    "TradeStatus",
    "UserArea",
    "UserBalance",
    "UserInfo",
    "UserRecommend",
]
