"""
Dramatiq actors.

Importing this package registers every actor with the broker.
"""

from jobs.tasks.daily_rewards import (
    distribute_area_rewards,
    distribute_daily_location_rewards,
)
from jobs.tasks.fee_share import distribute_recommend_area_rewards, share_vip_withdraw_fee
from jobs.tasks.price_change import apply_price_change
from jobs.tasks.trade_settlement import settle_trade_commissions
from jobs.tasks.vip_recheck import recheck_vip_tiers, recompute_area_levels


__all__ = [
    "apply_price_change",
    "distribute_area_rewards",
    "distribute_daily_location_rewards",
    "distribute_recommend_area_rewards",
    "recheck_vip_tiers",
    "recompute_area_levels",
    "settle_trade_commissions",
    "share_vip_withdraw_fee",
]
