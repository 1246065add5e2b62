"""
Capacity rules.

Pure fill-to-cap arithmetic of a placement slot. A credit that reaches the
ceiling is clamped to the remaining capacity and stops the slot.
"""

from dataclasses import dataclass

from placement_rewards.models.location import Location
from placement_rewards.services.reward_config import FeeSplit, PriceRatio
from placement_rewards.utils.exceptions import LedgerInvariantError


@dataclass(frozen=True)
class CapacityCredit:
    """
    Planned credit of one slot.

    Attributes:
        amount: Credit applied to ``current`` after clamping
        secondary_amount: Secondary currency paid for ``amount``
        primary_amount: Primary currency paid for ``amount``
        stops: Credit fills the slot
        exchange_amount: Unreconciled capacity exchanged when the slot stops
    """
    amount: int
    secondary_amount: int
    stops: bool
    exchange_amount: int = 0
    primary_amount: int = 0


def check_capacity_invariant(location: Location) -> None:
    """
    Validate ``0 <= current <= current_max``.

    Raises:
        LedgerInvariantError: If the slot is already inconsistent
    """
    if location.current < 0:
        raise LedgerInvariantError(
            f"Location {location.id} has negative current {location.current}"
        )
    if location.current > location.current_max:
        raise LedgerInvariantError(
            f"Location {location.id} current {location.current} exceeds "
            f"max {location.current_max}"
        )


def plan_credit(
    location: Location, amount: int, price: PriceRatio | FeeSplit | None = None
) -> CapacityCredit:
    """
    Plan a credit under the fill-to-cap rule.

    Args:
        location: Slot to credit
        amount: Requested credit
        price: Currency conversion of the credited amount, None when the
            credit pays nothing into balances

    Returns:
        Clamped credit

    Raises:
        LedgerInvariantError: On negative amount or inconsistent slot
    """
    if amount < 0:
        raise LedgerInvariantError(f"Negative credit {amount} for location {location.id}")
    check_capacity_invariant(location)

    stops = location.current + amount >= location.current_max
    if stops:
        amount = location.current_max - location.current

    secondary = price.secondary(amount) if price else 0
    primary = price.primary(amount) if price else 0

    exchange = 0
    if stops and location.current_max > location.current_max_new:
        exchange = location.current_max - location.current_max_new

    return CapacityCredit(
        amount=amount,
        secondary_amount=secondary,
        stops=stops,
        exchange_amount=exchange,
        primary_amount=primary,
    )


def plan_debit(location: Location, amount: int) -> int:
    """
    Plan a debit clamped to the banked amount.

    Args:
        location: Slot to debit
        amount: Requested debit

    Returns:
        Debit that keeps ``current`` non-negative

    Raises:
        LedgerInvariantError: On negative amount or inconsistent slot
    """
    if amount < 0:
        raise LedgerInvariantError(f"Negative debit {amount} for location {location.id}")
    check_capacity_invariant(location)
    return min(amount, location.current)
