"""
Formatters utility.

Utility functions for rendering ledger amounts in logs.
"""

from decimal import Decimal

from placement_rewards.config.constants import MICRO_UNIT


def format_amount(micro: int) -> str:
    """
    Format micro-unit amount as a decimal string.

    Args:
        micro: Amount in ledger micro-units

    Returns:
        Human readable amount like "12.50000"
    """
    return f"{Decimal(micro) / Decimal(MICRO_UNIT):.5f}"


def to_micro(amount: Decimal | int | str) -> int:
    """
    Convert a unit amount to ledger micro-units (floored).

    Args:
        amount: Amount in whole units

    Returns:
        Amount in micro-units
    """
    return int(Decimal(str(amount)) * MICRO_UNIT)
