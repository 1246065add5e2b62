"""
Integration tests for the fee-funded daily passes.

- VIP tiers 1 to 3 sharing today's withdraw fee
- Recommend area levels paid from yesterday's placement volume
"""

from datetime import UTC, datetime, timedelta

import pytest

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.models.enums import LocationStatus, RewardReason, RewardType
from placement_rewards.services.distribution import (
    DistributionEngine,
    RecommendAreaRewardService,
    VipFeeShareService,
)
from placement_rewards.utils.datetime_utils import days_ago_window


@pytest.fixture
def fee_ledger(ledger):
    """
    Today's withdraw fee is 10% of 1000 units, 100 units.

    - user 1: VIP 1 with two running slots
    - user 2: VIP 1 locked, no slot
    - user 3: VIP 2 without a slot, so tier 2 has no members
    - user 4: VIP 3 with a slot 5 units short of full
    """
    ledger.set_config(withdraw_rate=10, v1=10, v2=20, v3=30, exchange_rate=10)
    ledger.add_user(1, vip=1)
    ledger.add_user(2, vip=1, lock_vip=True)
    ledger.add_user(3, vip=2)
    ledger.add_user(4, vip=3)
    ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT)
    ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT)
    ledger.add_location(
        user_id=4, usdt=10 * MICRO_UNIT, current_max=20 * MICRO_UNIT, current=15 * MICRO_UNIT
    )

    ledger.add_trade(9, amount_csd=1000 * MICRO_UNIT, settled_at=datetime.now(UTC))
    ledger.add_trade(9, amount_csd=5000 * MICRO_UNIT, settled_at=days_ago_window(1)[0])
    ledger.add_trade(9, amount_csd=5000 * MICRO_UNIT)
    return ledger


class TestVipFeeShare:
    """Withdraw fee split across VIP tiers."""

    @pytest.mark.asyncio
    async def test_tier_members_share_equally(self, fee_ledger):
        """Tier 1 splits 10 units between the locked holder and the slot holder."""
        ledger = fee_ledger

        await VipFeeShareService(ledger).run()

        first, second = await ledger.locations.list_by_user(1)
        assert first.current == 5 * MICRO_UNIT
        assert second.current == 0
        assert (await ledger.balances.get_by_user(1)).balance_usdt == 5 * MICRO_UNIT
        assert (await ledger.balances.get_by_user(2)).balance_usdt == 5 * MICRO_UNIT
        assert await ledger.balances.get_by_user(3) is None

        rewards = ledger.rewards.by_reason(RewardReason.VIP_FEE_SHARE.value)
        assert sorted((reward.user_id, reward.level) for reward in rewards) == [
            (1, 1), (2, 1), (4, 3)
        ]
        assert {reward.type for reward in rewards} == {RewardType.SYSTEM.value}

    @pytest.mark.asyncio
    async def test_share_clamped_on_fill(self, fee_ledger):
        """Tier 3 share of 30 units fills the slot with 5 and exchanges the rest."""
        ledger = fee_ledger

        report = await VipFeeShareService(ledger).run()

        (slot,) = await ledger.locations.list_by_user(4)
        assert slot.status == LocationStatus.STOPPED.value
        assert slot.current == slot.current_max
        assert report.stopped_location_ids == {slot.id}

        # 5 units credited, 20 units of capacity exchanged less 10%
        balance = await ledger.balances.get_by_user(4)
        assert balance.balance_usdt == 5 * MICRO_UNIT + 18 * MICRO_UNIT
        assert len(ledger.rewards.by_reason(RewardReason.EXCHANGE.value)) == 1

    @pytest.mark.asyncio
    async def test_no_fee_today(self, ledger):
        ledger.set_config(withdraw_rate=10, v1=10)
        ledger.add_user(1, vip=1, lock_vip=True)
        ledger.add_trade(9, amount_csd=1000 * MICRO_UNIT)

        report = await VipFeeShareService(ledger).run()

        assert report.applied_count == 0
        assert ledger.rewards.table.all() == []

    @pytest.mark.asyncio
    async def test_engine_entry_point(self, fee_ledger):
        report = await DistributionEngine(fee_ledger).share_vip_fee()

        assert report.procedure == "vip_fee_share"
        assert report.applied_count == 3


@pytest.fixture
def recommend_ledger(ledger):
    """
    Yesterday user 20 placed 1000 units.

    - user 1: stored area level 2, roomy slot
    - user 2: no stored level, branches 300 and 150 units give level 1,
      slot 20 units from full
    - user 3: stored level 1 but no slot
    - users 5 and 6: the branches of user 2
    """
    ledger.set_config(
        recommend_area_one=100,
        recommend_area_two=200,
        recommend_area_three=300,
        recommend_area_four=400,
        recommend_area_one_rate=10,
        recommend_area_two_rate=10,
        recommend_area_three_rate=10,
        recommend_area_four_rate=10,
        reward_rate=80,
        coin_reward_rate=20,
        coin_price=500,
        exchange_rate=10,
    )
    for user_id, sponsor_id in ((1, None), (2, 1), (3, None), (5, 2), (6, 2), (20, None)):
        ledger.add_user(user_id, sponsor_id=sponsor_id)

    ledger.areas.table.insert(user_id=1, amount=0, self_amount=0, level=2)
    ledger.areas.table.insert(user_id=3, amount=0, self_amount=0, level=1)
    ledger.areas.table.insert(user_id=5, amount=200 * MICRO_UNIT, self_amount=100 * MICRO_UNIT, level=0)
    ledger.areas.table.insert(user_id=6, amount=0, self_amount=150 * MICRO_UNIT, level=0)

    ledger.add_location(user_id=1, usdt=100 * MICRO_UNIT)
    ledger.add_location(user_id=2, usdt=10 * MICRO_UNIT, current_max=20 * MICRO_UNIT)
    yesterday = days_ago_window(1)[0] + timedelta(hours=1)
    ledger.add_location(user_id=20, usdt=1000 * MICRO_UNIT, created_at=yesterday)
    return ledger


class TestRecommendAreaReward:
    """Recommend area level payout."""

    @pytest.mark.asyncio
    async def test_levels_are_cumulative(self, recommend_ledger):
        """Level 1 pays 33 units to users 1, 2 and 3; level 2 pays 100 units to user 1."""
        ledger = recommend_ledger

        report = await RecommendAreaRewardService(ledger).run()

        (slot,) = await ledger.locations.list_by_user(1)
        assert slot.current == 133 * MICRO_UNIT
        rewards = ledger.rewards.by_reason(RewardReason.RECOMMEND_AREA.value)
        assert sorted((reward.user_id, reward.level, reward.amount) for reward in rewards) == [
            (1, 1, 33 * MICRO_UNIT),
            (1, 2, 100 * MICRO_UNIT),
            (2, 1, 20 * MICRO_UNIT),
        ]
        assert [(outcome.unit_id, outcome.reason) for outcome in report.skipped] == [
            (3, "no_running_slot")
        ]

    @pytest.mark.asyncio
    async def test_payout_split_across_currencies(self, recommend_ledger):
        """80% of the credit pays primary, 20% pays secondary at price 500 per thousand."""
        ledger = recommend_ledger

        await RecommendAreaRewardService(ledger).run()

        balance = await ledger.balances.get_by_user(1)
        assert balance.balance_usdt == 133 * MICRO_UNIT * 80 // 100
        assert balance.balance_dhb == 133 * MICRO_UNIT * 20 // 100 * 1000 // 500

    @pytest.mark.asyncio
    async def test_credit_clamped_on_fill(self, recommend_ledger):
        """User 2 takes 20 of 33 units, stops and exchanges the slot capacity."""
        ledger = recommend_ledger

        report = await RecommendAreaRewardService(ledger).run()

        (slot,) = await ledger.locations.list_by_user(2)
        assert slot.status == LocationStatus.STOPPED.value
        assert report.stopped_location_ids == {slot.id}
        balance = await ledger.balances.get_by_user(2)
        assert balance.balance_usdt == 16 * MICRO_UNIT + 18 * MICRO_UNIT
        assert balance.balance_dhb == 20 * MICRO_UNIT * 20 // 100 * 1000 // 500

    @pytest.mark.asyncio
    async def test_computed_level_is_not_stored(self, recommend_ledger):
        ledger = recommend_ledger

        await RecommendAreaRewardService(ledger).run()

        assert await ledger.areas.get_by_user(2) is None

    @pytest.mark.asyncio
    async def test_no_volume_yesterday(self, recommend_ledger):
        ledger = recommend_ledger
        ledger.locations.table.all()[-1].created_at = datetime(2020, 1, 1, tzinfo=UTC)

        report = await RecommendAreaRewardService(ledger).run()

        assert report.applied_count == 0
        assert ledger.rewards.table.all() == []
