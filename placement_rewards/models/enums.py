"""
Model enums.

String enums stored in VARCHAR columns.
"""

from enum import Enum, IntEnum


class LocationStatus(str, Enum):
    """Placement slot status."""

    RUNNING = "running"
    STOPPED = "stopped"


class RewardType(str, Enum):
    """Kind of record a reward row links back to."""

    LOCATION = "location"
    TRADE = "trade"
    PRICE_CHANGE = "price_change"
    SYSTEM = "system"


class RewardReason(str, Enum):
    """Reason codes of reward ledger rows."""

    LOCATION = "location"
    RECOMMEND_LOCATION = "recommend_location"
    AREA = "area"
    AREA_TOP_FOUR = "area_top_four"
    EXCHANGE = "exchange"
    PRICE_CHANGE_UP = "price_change_up"
    PRICE_CHANGE_DOWN = "price_change_down"
    WITHDRAW_RECOMMEND = "withdraw_recommend"
    WITHDRAW_SECOND_RECOMMEND = "withdraw_second_recommend"
    WITHDRAW_TEAM_VIP = "withdraw_team_vip"
    WITHDRAW_TEAM_VIP_LEVEL = "withdraw_team_vip_level"
    VIP_FEE_SHARE = "vip_fee_share"
    RECOMMEND_AREA = "recommend_area"


class TradeStatus(str, Enum):
    """Trade settlement status."""

    DEFAULT = "default"
    OK = "ok"


class PriceChangeStatus(IntEnum):
    """Price change event status."""

    PENDING = 0
    PROCESSED = 1
