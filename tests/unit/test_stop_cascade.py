"""
Tests for placement tree walks.

Tests cover:
- Subtracting a stopped slot's principal from every ancestor branch
- Adding a new slot's principal
- Cycle and depth protection of malformed chains
"""

import pytest

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.services.placement.stop_cascade import cascade_stop, propagate_open
from placement_rewards.utils.exceptions import (
    LedgerInvariantError,
    LookupMissError,
    PlacementCycleError,
    PlacementDepthError,
)


def build_chain(ledger, length: int, totals: tuple[int, int, int] = (100, 100, 100)):
    """Root slot 1 with each next slot placed in branch 2 of the previous one."""
    slots = [ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT, totals=totals)]
    for index in range(1, length):
        slots.append(
            ledger.add_location(
                user_id=index + 1,
                usdt=100 * MICRO_UNIT,
                top=slots[-1].id,
                top_num=2,
                totals=totals,
            )
        )
    return slots


class TestCascadeStop:
    """Test stop-cascade."""

    @pytest.mark.asyncio
    async def test_subtracts_principal_in_whole_units(self, ledger):
        """Every ancestor loses the principal in its own branch only."""
        slots = build_chain(ledger, 3)

        visited = await cascade_stop(ledger.locations, slots[2], max_depth=10)

        assert visited == [slots[1].id, slots[0].id]
        assert slots[1].branch_totals == (100, 0, 100)
        assert slots[0].branch_totals == (100, 0, 100)
        assert slots[2].branch_totals == (100, 100, 100)

    @pytest.mark.asyncio
    async def test_root_slot_has_no_ancestors(self, ledger):
        slots = build_chain(ledger, 1)
        assert await cascade_stop(ledger.locations, slots[0], max_depth=10) == []

    @pytest.mark.asyncio
    async def test_total_below_zero_rejected(self, ledger):
        """A branch total smaller than the principal is a broken ledger."""
        slots = build_chain(ledger, 2, totals=(0, 50, 0))

        with pytest.raises(LedgerInvariantError):
            await cascade_stop(ledger.locations, slots[1], max_depth=10)

    @pytest.mark.asyncio
    async def test_missing_ancestor(self, ledger):
        slot = ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT, top=999, top_num=1)

        with pytest.raises(LookupMissError):
            await cascade_stop(ledger.locations, slot, max_depth=10)


class TestMalformedChains:
    """Test cycle and depth protection."""

    @pytest.mark.asyncio
    async def test_cycle_detected(self, ledger):
        """Two slots pointing at each other never loop forever."""
        first = ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT, top=2, top_num=1)
        ledger.add_location(user_id=2, usdt=100 * MICRO_UNIT, top=1, top_num=1)

        with pytest.raises(PlacementCycleError) as exc_info:
            await propagate_open(ledger.locations, first, max_depth=10)

        assert exc_info.value.location_id == first.id
        assert exc_info.value.revisited_id == first.id

    @pytest.mark.asyncio
    async def test_depth_bound(self, ledger):
        """A chain longer than the bound is rejected."""
        slots = build_chain(ledger, 4)

        with pytest.raises(PlacementDepthError):
            await propagate_open(ledger.locations, slots[3], max_depth=2)

    @pytest.mark.asyncio
    async def test_chain_within_bound(self, ledger):
        slots = build_chain(ledger, 4, totals=(0, 0, 0))

        visited = await propagate_open(ledger.locations, slots[3], max_depth=3)

        assert visited == [slots[2].id, slots[1].id, slots[0].id]
        assert slots[0].total_two == 100
