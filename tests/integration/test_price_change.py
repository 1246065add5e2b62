"""
Integration tests for price change revaluation.
"""

import pytest

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.models.enums import PriceChangeStatus, RewardReason, RewardType
from placement_rewards.services.config_service import ConfigService
from placement_rewards.services.distribution import PriceChangeService
from placement_rewards.services.placement import PlacementOpener
from placement_rewards.services.referral import ReferralGraph
from placement_rewards.utils.exceptions import RunPreconditionError


@pytest.fixture
def price_ledger(ledger):
    """One holder with a running slot and 1000 secondary units at base 100."""
    ledger.set_config(b_price=100, b_price_base=100, exchange_rate=10)
    ledger.add_user(1)
    ledger.add_location(user_id=1, usdt=100_000_000, current=1_000_000)
    ledger.set_balance(1, dhb=1000)
    return ledger


class TestPriceChange:
    """Rise and fall of the secondary price."""

    @pytest.mark.asyncio
    async def test_rise_credits_slot(self, price_ledger):
        ledger = price_ledger
        event = ledger.add_price_change(origin=100, price=120)

        report = await PriceChangeService(ledger).run()

        location = await ledger.locations.get_running_by_user(1)
        assert location.current == 1_000_200
        rewards = ledger.rewards.by_reason(RewardReason.PRICE_CHANGE_UP.value)
        assert [(reward.amount, reward.type, reward.type_record_id) for reward in rewards] == [
            (200, RewardType.PRICE_CHANGE.value, event.id)
        ]
        assert event.status == PriceChangeStatus.PROCESSED.value
        assert report.applied_count == 1

    @pytest.mark.asyncio
    async def test_rise_then_fall_round_trip(self, price_ledger):
        """A rise followed by the reverse fall restores the slot."""
        ledger = price_ledger
        ledger.add_price_change(origin=100, price=120)
        await PriceChangeService(ledger).run()
        ledger.add_price_change(origin=120, price=100)

        await PriceChangeService(ledger).run()

        location = await ledger.locations.get_running_by_user(1)
        assert location.current == 1_000_000
        down = ledger.rewards.by_reason(RewardReason.PRICE_CHANGE_DOWN.value)
        assert [reward.amount for reward in down] == [200]

    @pytest.mark.asyncio
    async def test_fall_clamped_at_zero(self, price_ledger):
        ledger = price_ledger
        location = await ledger.locations.get_running_by_user(1)
        location.current = 50
        ledger.add_price_change(origin=120, price=100)

        await PriceChangeService(ledger).run()

        assert location.current == 0

    @pytest.mark.asyncio
    async def test_event_applied_once(self, price_ledger):
        ledger = price_ledger
        ledger.add_price_change(origin=100, price=120)

        await PriceChangeService(ledger).run()
        second = await PriceChangeService(ledger).run()

        assert second.applied_count == 0
        assert len(ledger.rewards.table.all()) == 1

    @pytest.mark.asyncio
    async def test_holder_without_secondary_balance_skipped(self, price_ledger):
        ledger = price_ledger
        ledger.set_balance(1, dhb=0)
        ledger.add_price_change(origin=100, price=120)

        report = await PriceChangeService(ledger).run()

        assert report.applied_count == 0
        assert ledger.rewards.table.all() == []

    @pytest.mark.asyncio
    async def test_invalid_baseline_aborts(self, price_ledger):
        """A zero price base aborts before the event is acknowledged."""
        ledger = price_ledger
        ledger.set_config(b_price_base=0)
        event = ledger.add_price_change(origin=100, price=120)

        with pytest.raises(RunPreconditionError):
            await PriceChangeService(ledger).run()

        assert event.status == PriceChangeStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_rise_reaches_user_registered_without_profile(self, ledger):
        """Slot owners are revalued even when no user profile row exists."""
        ledger.set_config(b_price=100, b_price_base=100, exchange_rate=10)
        await ReferralGraph(ledger.recommends).register(1, None)
        slot = await PlacementOpener(ledger).open_location(1, 100 * MICRO_UNIT, out_rate=300)
        ledger.set_balance(1, dhb=1000)
        ledger.add_price_change(origin=100, price=120)

        report = await PriceChangeService(ledger).run()

        assert await ledger.user_infos.get_by_user(1) is None
        assert (await ledger.locations.get_by_id(slot.id)).current == 200
        assert report.applied_count == 1


class TestConfigService:
    """Admin config writes."""

    @pytest.mark.asyncio
    async def test_price_update_records_change(self, ledger):
        ledger.set_config(b_price=100)

        change = await ConfigService(ledger).update_values({"b_price": "120"})

        assert (change.origin, change.price) == (100, 120)
        assert await ledger.price_changes.get_pending() is change

    @pytest.mark.asyncio
    async def test_other_keys_record_nothing(self, ledger):
        ledger.set_config(b_price=100)

        change = await ConfigService(ledger).update_values(
            {"exchange_rate": "5", "b_price": "100"}
        )

        assert change is None
        assert await ledger.price_changes.get_pending() is None
        assert (await ledger.configs.get_values(["exchange_rate"])) == {"exchange_rate": "5"}
