"""
Tests for slot capacity rules.

Tests cover:
- Fill-to-cap clamping of credits
- Exchange of unreconciled capacity on stop
- Debit clamping at zero
- Rejection of negative amounts and inconsistent slots
"""

import pytest

from placement_rewards.models.location import Location
from placement_rewards.services.placement.capacity import (
    check_capacity_invariant,
    plan_credit,
    plan_debit,
)
from placement_rewards.services.reward_config import FeeSplit, PriceRatio
from placement_rewards.utils.exceptions import LedgerInvariantError


def make_location(current: int, current_max: int = 100, current_max_new: int = 0) -> Location:
    return Location(
        id=1,
        user_id=10,
        usdt=50,
        current=current,
        current_max=current_max,
        current_max_new=current_max_new,
    )


class TestPlanCredit:
    """Test credit planning."""

    def test_credit_below_cap(self):
        """A credit below the cap is applied in full and keeps the slot running."""
        plan = plan_credit(make_location(10), 10)
        assert plan.amount == 10
        assert plan.stops is False
        assert plan.exchange_amount == 0

    def test_credit_clamped_on_fill(self):
        """95/100 plus 10 applies only 5 and stops the slot."""
        plan = plan_credit(make_location(95), 10)
        assert plan.amount == 5
        assert plan.stops is True

    def test_credit_reaching_cap_exactly_stops(self):
        """Reaching the cap exactly stops the slot."""
        plan = plan_credit(make_location(90), 10)
        assert plan.amount == 10
        assert plan.stops is True

    def test_exchange_on_stop(self):
        """Unreconciled capacity is exchanged when the slot stops."""
        plan = plan_credit(make_location(95, current_max_new=60), 10)
        assert plan.exchange_amount == 40

    def test_no_exchange_when_reconciled(self):
        """Nothing is exchanged once current_max_new caught up."""
        plan = plan_credit(make_location(95, current_max_new=100), 10)
        assert plan.exchange_amount == 0

    def test_secondary_amount_uses_clamped_credit(self):
        """Secondary pay follows the clamped amount."""
        plan = plan_credit(make_location(95), 10, PriceRatio(b_price=200, b_price_base=100))
        assert plan.amount == 5
        assert plan.secondary_amount == 2

    def test_no_secondary_without_price(self):
        """Credits without a price pay no secondary amount."""
        assert plan_credit(make_location(0), 10).secondary_amount == 0

    def test_fee_split_pays_both_currencies_on_clamped_credit(self):
        """95/100 plus 50 pays 80% of 5 in primary and 20% of 5 at price 500 in secondary."""
        plan = plan_credit(
            make_location(95), 50, FeeSplit(reward_rate=80, coin_reward_rate=20, coin_price=500)
        )
        assert plan.amount == 5
        assert plan.primary_amount == 4
        assert plan.secondary_amount == 2

    def test_price_ratio_pays_no_primary(self):
        plan = plan_credit(make_location(0), 10, PriceRatio(b_price=100, b_price_base=100))
        assert plan.primary_amount == 0

    def test_negative_credit_rejected(self):
        """Negative credits break the ledger."""
        with pytest.raises(LedgerInvariantError):
            plan_credit(make_location(0), -1)

    def test_inconsistent_slot_rejected(self):
        """A slot already above its cap is not credited."""
        with pytest.raises(LedgerInvariantError):
            plan_credit(make_location(101), 1)


class TestPlanDebit:
    """Test debit planning."""

    def test_debit_clamped_at_zero(self):
        """A debit larger than the bank only empties it."""
        assert plan_debit(make_location(30), 50) == 30

    def test_debit_in_full(self):
        """A small debit is applied in full."""
        assert plan_debit(make_location(30), 20) == 20

    def test_negative_debit_rejected(self):
        """Negative debits break the ledger."""
        with pytest.raises(LedgerInvariantError):
            plan_debit(make_location(30), -5)


class TestCapacityInvariant:
    """Test invariant check."""

    def test_negative_current(self):
        """Negative current is rejected."""
        with pytest.raises(LedgerInvariantError):
            check_capacity_invariant(make_location(-1))

    def test_full_slot_is_consistent(self):
        """current == current_max is valid."""
        check_capacity_invariant(make_location(100))
