"""
Reward configuration snapshot.

Rates and thresholds are read from the ``config`` table once per run and
frozen for its whole duration. Parsing is fail-safe-low: a missing or
malformed value becomes zero, which floors every dependent payout to zero
instead of aborting the run.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import ClassVar

from loguru import logger

from placement_rewards.repositories.config_repository import ConfigRepository
from placement_rewards.utils.exceptions import RunPreconditionError

ORDINALS = ("one", "two", "three", "four", "five", "six", "seven", "eight")

LEVEL_RATE_KEYS = tuple(f"recommend_{name}_rate" for name in ORDINALS)
AREA_THRESHOLD_KEYS = tuple(f"area_{name}" for name in ORDINALS[:5])
AREA_SHARE_KEYS = tuple(f"area_num_{name}" for name in ORDINALS[:5])
POOL_SHARE_KEYS = ORDINALS[:4]
VIP_BALANCE_KEYS = tuple(f"vip_{tier}_balance" for tier in range(6))
VIP_TEAM_BALANCE_KEYS = tuple(f"vip_{tier}_balance_team" for tier in range(1, 6))
TEAM_VIP_RATE_KEYS = (
    "withdraw_team_vip_rate",
    "withdraw_team_vip_second_rate",
    "withdraw_team_vip_third_rate",
    "withdraw_team_vip_fourth_rate",
    "withdraw_team_vip_fifth_rate",
)
RECOMMEND_AREA_KEYS = tuple(f"recommend_area_{name}" for name in ORDINALS[:4])
RECOMMEND_AREA_RATE_KEYS = tuple(f"recommend_area_{name}_rate" for name in ORDINALS[:4])
VIP_FEE_SHARE_KEYS = ("v1", "v2", "v3")


def parse_config_int(key: str, raw: str | None) -> int:
    """
    Parse a raw config value as a base-10 integer.

    Decimal strings are floored. Absent or malformed values yield 0.

    Args:
        key: Config key, used for logging
        raw: Raw stored value

    Returns:
        Parsed integer
    """
    if raw is None:
        return 0
    value = raw.strip()
    try:
        return int(value, 10)
    except ValueError:
        pass
    try:
        return int(Decimal(value).to_integral_value(rounding=ROUND_FLOOR))
    except (InvalidOperation, ValueError, OverflowError):
        logger.warning(f"Config {key} has malformed value {raw!r}, using 0")
        return 0


class ConfigSnapshot:
    """Immutable view of config values read once per run."""

    def __init__(self, values: dict[str, str]) -> None:
        self._values = dict(values)

    @classmethod
    async def load(
        cls, configs: ConfigRepository, keys: list[str] | tuple[str, ...]
    ) -> "ConfigSnapshot":
        """
        Read config values for a run.

        Args:
            configs: Config repository
            keys: Keys the run needs

        Returns:
            Snapshot of the stored values

        Raises:
            RunPreconditionError: If the config store cannot be read
        """
        try:
            values = await configs.get_values(list(keys))
        except Exception as e:
            raise RunPreconditionError(f"Cannot read reward config: {e}") from e

        missing = [key for key in keys if key not in values]
        if missing:
            logger.warning(f"Config keys missing, treated as 0: {', '.join(missing)}")
        return cls(values)

    def get_int(self, key: str) -> int:
        """Integer value of a key, 0 when absent or malformed."""
        return parse_config_int(key, self._values.get(key))

    def get_ints(self, keys: tuple[str, ...]) -> tuple[int, ...]:
        return tuple(self.get_int(key) for key in keys)


@dataclass(frozen=True)
class PriceRatio:
    """Conversion of primary amounts into the secondary currency."""
    b_price: int
    b_price_base: int

    def secondary(self, amount: int) -> int:
        """Secondary currency amount for a primary amount."""
        if self.b_price <= 0:
            return 0
        return amount * self.b_price_base // self.b_price

    def primary(self, amount: int) -> int:
        """Slot credits at a price ratio pay no primary currency."""
        return 0


@dataclass(frozen=True)
class FeeSplit:
    """
    Payout of a capacity credit split across both currencies.

    The credited capacity is paid ``reward_rate`` percent in the primary
    currency and ``coin_reward_rate`` percent in the secondary currency at
    ``coin_price`` per thousand units.
    """
    reward_rate: int
    coin_reward_rate: int
    coin_price: int

    def primary(self, amount: int) -> int:
        """Primary currency paid for a credited amount."""
        return amount * self.reward_rate // 100

    def secondary(self, amount: int) -> int:
        """Secondary currency paid for a credited amount."""
        if self.coin_price <= 0:
            return 0
        return amount * self.coin_reward_rate // 100 * 1000 // self.coin_price


@dataclass(frozen=True)
class LocationRewardConfig:
    """Rates of the daily location pass."""
    KEYS: ClassVar[tuple[str, ...]] = (
        "location_reward_rate",
        "b_price",
        "b_price_base",
        "exchange_rate",
        *LEVEL_RATE_KEYS,
    )

    location_reward_rate: int
    price: PriceRatio
    exchange_rate: int
    level_rates: tuple[int, ...]

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "LocationRewardConfig":
        return cls(
            location_reward_rate=snapshot.get_int("location_reward_rate"),
            price=PriceRatio(snapshot.get_int("b_price"), snapshot.get_int("b_price_base")),
            exchange_rate=snapshot.get_int("exchange_rate"),
            level_rates=snapshot.get_ints(LEVEL_RATE_KEYS),
        )


@dataclass(frozen=True)
class AreaRewardConfig:
    """Thresholds and shares of the area pass and the top-four pool."""
    KEYS: ClassVar[tuple[str, ...]] = (
        "b_price",
        "b_price_base",
        "exchange_rate",
        "total",
        *AREA_THRESHOLD_KEYS,
        *AREA_SHARE_KEYS,
        *POOL_SHARE_KEYS,
    )

    price: PriceRatio
    exchange_rate: int
    thresholds: tuple[int, ...]
    shares: tuple[int, ...]
    pool_rate: int
    pool_shares: tuple[int, ...]

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "AreaRewardConfig":
        return cls(
            price=PriceRatio(snapshot.get_int("b_price"), snapshot.get_int("b_price_base")),
            exchange_rate=snapshot.get_int("exchange_rate"),
            thresholds=snapshot.get_ints(AREA_THRESHOLD_KEYS),
            shares=snapshot.get_ints(AREA_SHARE_KEYS),
            pool_rate=snapshot.get_int("total"),
            pool_shares=snapshot.get_ints(POOL_SHARE_KEYS),
        )


@dataclass(frozen=True)
class TradeCommissionConfig:
    """Rates of the trade settlement cascade."""
    KEYS: ClassVar[tuple[str, ...]] = (
        "withdraw_rate",
        "withdraw_recommend_rate",
        "withdraw_recommend_second_rate",
        "withdraw_team_vip_level_rate",
        "vip_0_balance",
        *TEAM_VIP_RATE_KEYS,
    )

    withdraw_rate: int
    recommend_rate: int
    recommend_second_rate: int
    level_rate: int
    recommend_balance_floor: int
    team_vip_rates: dict[int, int]

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "TradeCommissionConfig":
        rates = snapshot.get_ints(TEAM_VIP_RATE_KEYS)
        return cls(
            withdraw_rate=snapshot.get_int("withdraw_rate"),
            recommend_rate=snapshot.get_int("withdraw_recommend_rate"),
            recommend_second_rate=snapshot.get_int("withdraw_recommend_second_rate"),
            level_rate=snapshot.get_int("withdraw_team_vip_level_rate"),
            recommend_balance_floor=snapshot.get_int("vip_0_balance"),
            # VIP 2..6 map to the first..fifth team rate
            team_vip_rates={vip: rate for vip, rate in zip(range(2, 7), rates)},
        )

    @property
    def team_rate_ceiling(self) -> int:
        """Highest cumulative team rate a chain walk may pay."""
        return self.team_vip_rates[6]


@dataclass(frozen=True)
class PriceChangeConfig:
    """Baseline of the price change revaluation."""
    KEYS: ClassVar[tuple[str, ...]] = ("b_price_base", "exchange_rate")

    b_price_base: int
    exchange_rate: int

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "PriceChangeConfig":
        return cls(
            b_price_base=snapshot.get_int("b_price_base"),
            exchange_rate=snapshot.get_int("exchange_rate"),
        )


@dataclass(frozen=True)
class VipConfig:
    """
    VIP thresholds in whole units.

    ``balances[k]`` is the own balance floor of tier k+1 and
    ``team_balances[k]`` the team balance floor of tier k+2.
    """
    KEYS: ClassVar[tuple[str, ...]] = (*VIP_BALANCE_KEYS, *VIP_TEAM_BALANCE_KEYS)

    balances: tuple[int, ...]
    team_balances: tuple[int, ...]

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "VipConfig":
        return cls(
            balances=snapshot.get_ints(VIP_BALANCE_KEYS),
            team_balances=snapshot.get_ints(VIP_TEAM_BALANCE_KEYS),
        )


@dataclass(frozen=True)
class AreaLevelConfig:
    """Small-area thresholds of user area levels in whole units."""
    KEYS: ClassVar[tuple[str, ...]] = RECOMMEND_AREA_KEYS

    thresholds: tuple[int, ...]

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "AreaLevelConfig":
        return cls(thresholds=snapshot.get_ints(RECOMMEND_AREA_KEYS))


@dataclass(frozen=True)
class RecommendAreaRewardConfig:
    """Level thresholds, fee shares and payout split of the recommend area pass."""
    KEYS: ClassVar[tuple[str, ...]] = (
        *RECOMMEND_AREA_KEYS,
        *RECOMMEND_AREA_RATE_KEYS,
        "reward_rate",
        "coin_reward_rate",
        "coin_price",
        "exchange_rate",
    )

    thresholds: tuple[int, ...]
    rates: tuple[int, ...]
    split: FeeSplit
    exchange_rate: int

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "RecommendAreaRewardConfig":
        return cls(
            thresholds=snapshot.get_ints(RECOMMEND_AREA_KEYS),
            rates=snapshot.get_ints(RECOMMEND_AREA_RATE_KEYS),
            split=FeeSplit(
                reward_rate=snapshot.get_int("reward_rate"),
                coin_reward_rate=snapshot.get_int("coin_reward_rate"),
                coin_price=snapshot.get_int("coin_price"),
            ),
            exchange_rate=snapshot.get_int("exchange_rate"),
        )


@dataclass(frozen=True)
class VipFeeShareConfig:
    """Percent of today's withdraw fee shared by VIP tiers 1, 2 and 3."""
    KEYS: ClassVar[tuple[str, ...]] = (*VIP_FEE_SHARE_KEYS, "withdraw_rate", "exchange_rate")

    tier_rates: dict[int, int]
    withdraw_rate: int
    exchange_rate: int

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "VipFeeShareConfig":
        rates = snapshot.get_ints(VIP_FEE_SHARE_KEYS)
        return cls(
            tier_rates={vip: rate for vip, rate in zip(range(1, 4), rates)},
            withdraw_rate=snapshot.get_int("withdraw_rate"),
            exchange_rate=snapshot.get_int("exchange_rate"),
        )
