"""
Distribution formulas.

Integer arithmetic of every payout. Each division floors, in the order the
platform has always applied them.
"""

from placement_rewards.config.constants import (
    DISTRIBUTION_TICKS,
    MICRO_UNIT,
    POOL_DAY_BEFORE_WEIGHT,
    POOL_YESTERDAY_WEIGHT,
)


def location_tick_reward(usdt: int, location_reward_rate: int) -> int:
    """
    Daily yield of a slot for one distribution tick.

    Args:
        usdt: Slot principal
        location_reward_rate: Per-mille daily rate

    Returns:
        usdt / 1000 * rate / ticks
    """
    return usdt // 1000 * location_reward_rate // DISTRIBUTION_TICKS


def referral_commission(
    child_usdt: int, ancestor_usdt: int, location_reward_rate: int, level_rate: int
) -> int:
    """
    Commission of an ancestor on a descendant's daily yield.

    The base is the smaller of the two principals.

    Args:
        child_usdt: Principal of the descendant slot
        ancestor_usdt: Principal of the ancestor slot
        location_reward_rate: Per-mille daily rate
        level_rate: Percent paid at this level

    Returns:
        min(usdt) / 1000 * rate / 100 * level_rate / ticks
    """
    base = min(child_usdt, ancestor_usdt)
    return base // 1000 * location_reward_rate // 100 * level_rate // DISTRIBUTION_TICKS


def referral_level_unlocked(level_index: int, slot_count: int) -> bool:
    """
    Check the reinvestment gate of a commission level.

    Levels 0 and 1 are always open; level i >= 2 needs the ancestor to own
    at least i + 1 slots.
    """
    if level_index < 2:
        return True
    return slot_count >= level_index + 1


def qualifying_pair(total: int, total_two: int, total_three: int) -> int:
    """Sum of the two smaller branch totals."""
    smallest, middle, _ = sorted((total, total_two, total_three))
    return smallest + middle


def area_tier_share(network_volume: int, tier_share: int, members: int) -> int:
    """
    Per-member credit of an area tier.

    Args:
        network_volume: Yesterday's placement volume
        tier_share: Per-mille share of the tier
        members: Qualifying slots

    Returns:
        volume / 1000 * share / members, 0 without members
    """
    if members <= 0:
        return 0
    return network_volume // 1000 * tier_share // members


def sponsor_pool_total(yesterday_volume: int, day_before_volume: int, pool_rate: int) -> int:
    """
    Top-four sponsor pool.

    Args:
        yesterday_volume: Placement volume of yesterday
        day_before_volume: Placement volume of the day before yesterday
        pool_rate: Percent of the weighted volume paid out

    Returns:
        Pool amount
    """
    return (
        yesterday_volume // 100 // 100 * POOL_YESTERDAY_WEIGHT * pool_rate
        + day_before_volume // 100 // 100 * POOL_DAY_BEFORE_WEIGHT * pool_rate
    )


def price_change_delta(balance: int, base: int, high_price: int, low_price: int) -> int:
    """
    Value change of a secondary balance between two prices.

    A rise passes (new, old), a fall passes (old, new).

    Args:
        balance: Secondary currency balance
        base: Price base of the secondary currency
        high_price: Price subtracted from
        low_price: Price subtracted

    Returns:
        (balance*100/base*high - balance*100/base*low) / 100
    """
    scaled = balance * 100 // base
    return (scaled * high_price - scaled * low_price) // 100


def small_area_volume(branch_volumes: list[int]) -> int:
    """Volume of every branch except the largest one."""
    if not branch_volumes:
        return 0
    return sum(branch_volumes) - max(branch_volumes)


def vip_fee_share(fee: int, tier_rate: int, members: int) -> int:
    """
    Per-member share of the withdraw fee for one VIP tier.

    Returns:
        fee * rate / 100 / members, 0 without members
    """
    if members <= 0:
        return 0
    return fee * tier_rate // 100 // members


def recommend_area_share(network_volume: int, level_rate: int, members: int) -> int:
    """
    Per-member credit of a recommend area level.

    The volume is floored to whole units before the split and the share is
    scaled back to micro-units.

    Args:
        network_volume: Yesterday's placement volume in micro-units
        level_rate: Percent of the volume paid to the level
        members: Users at or above the level

    Returns:
        Share in micro-units, 0 without members
    """
    if members <= 0:
        return 0
    return network_volume // MICRO_UNIT * level_rate // 100 // members * MICRO_UNIT
