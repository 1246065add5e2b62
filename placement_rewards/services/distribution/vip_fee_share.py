"""
VIP withdraw fee share.

Today's withdraw fee is shared by the holders of VIP tiers 1, 2 and 3,
each tier taking its configured percent split equally among its members.
Holders of a manually locked tier are paid straight into their primary
balance. Every other holder takes part through their earliest running
slot, which is credited under the fill-to-cap rule and pays the applied
credit into the primary balance.
"""

from placement_rewards.config.constants import FEE_SHARE_VIP_TIERS
from placement_rewards.models.enums import RewardReason, RewardType
from placement_rewards.models.location import Location
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.formulas import vip_fee_share
from placement_rewards.services.placement.accountant import PlacementAccountant, RewardTag
from placement_rewards.services.reward_config import ConfigSnapshot, FeeSplit, VipFeeShareConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.datetime_utils import days_ago_window
from placement_rewards.utils.exceptions import is_run_fatal

# Slot credits are paid out in full in the primary currency
PRIMARY_PAYOUT = FeeSplit(reward_rate=100, coin_reward_rate=0, coin_price=0)


class VipFeeShareService(BaseService):
    """Shares the daily withdraw fee across VIP tiers."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        super().__init__(ledger)
        self.accountant = PlacementAccountant(ledger, max_depth)

    @log_operation
    async def run(self) -> RunReport:
        """
        Share today's withdraw fee.

        Returns:
            Report of credited and skipped units

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, VipFeeShareConfig.KEYS)
        config = VipFeeShareConfig.from_snapshot(snapshot)
        report = RunReport(procedure="vip_fee_share")

        start, end = days_ago_window(0)
        volume = await self.ledger.trades.sum_amount_settled_between(start, end)
        fee = volume * config.withdraw_rate // 100
        if fee <= 0:
            self.logger.info("No withdraw fee today, VIP fee share skipped")
            return report

        locked, slots = await self._members()
        for vip in FEE_SHARE_VIP_TIERS:
            members = len(locked[vip]) + len(slots[vip])
            share = vip_fee_share(fee, config.tier_rates[vip], members)
            self.logger.info(
                f"VIP {vip} fee share: {members} members, share {share}",
                extra={"vip": vip, "members": members, "share": share},
            )
            if share <= 0:
                continue

            for user_id in locked[vip]:
                await self._credit_balance(user_id, vip, share, report)
            for location in slots[vip]:
                await self._credit_slot(location, vip, share, config, report)

        self.logger.info(report.summary())
        return report

    async def _members(self) -> tuple[dict[int, list[int]], dict[int, list[Location]]]:
        """
        Group tier holders by how they are paid.

        Returns:
            (locked user ids per tier, earliest running slot per unlocked
            holder per tier)
        """
        locked: dict[int, list[int]] = {vip: [] for vip in FEE_SHARE_VIP_TIERS}
        slots: dict[int, list[Location]] = {vip: [] for vip in FEE_SHARE_VIP_TIERS}

        unlocked: dict[int, int] = {}
        for info in await self.ledger.user_infos.list_by_vips(FEE_SHARE_VIP_TIERS):
            if info.lock_vip:
                locked[info.vip].append(info.user_id)
            else:
                unlocked[info.user_id] = info.vip

        seen: set[int] = set()
        for location in await self.ledger.locations.list_running():
            vip = unlocked.get(location.user_id)
            if vip is None or location.user_id in seen:
                continue
            seen.add(location.user_id)
            slots[vip].append(location)
        return locked, slots

    async def _credit_balance(
        self, user_id: int, vip: int, share: int, report: RunReport
    ) -> None:
        try:
            async with self.ledger.transaction():
                await self.ledger.balances.credit(user_id, usdt=share)
                await self.ledger.rewards.append_reward(
                    user_id=user_id,
                    amount=share,
                    amount_b=0,
                    reason=RewardReason.VIP_FEE_SHARE.value,
                    type=RewardType.SYSTEM.value,
                    type_record_id=0,
                    level=vip,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying VIP {vip} fee share to user {user_id}: {e}",
                extra={"user_id": user_id, "vip": vip},
            )
            report.add_skipped(user_id, "error", str(e))
            return

        report.add_applied(user_id, share, RewardReason.VIP_FEE_SHARE.value, f"vip {vip} locked")

    async def _credit_slot(
        self,
        location: Location,
        vip: int,
        share: int,
        config: VipFeeShareConfig,
        report: RunReport,
    ) -> None:
        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(location.id)
                if fresh is None:
                    report.add_skipped(location.id, "not_running")
                    return
                credit = await self.accountant.credit(
                    fresh,
                    share,
                    RewardTag(
                        reason=RewardReason.VIP_FEE_SHARE,
                        type=RewardType.SYSTEM,
                        level=vip,
                    ),
                    PRIMARY_PAYOUT,
                    config.exchange_rate,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying VIP {vip} fee share to location {location.id}: {e}",
                extra={"location_id": location.id, "vip": vip},
            )
            report.add_skipped(location.id, "error", str(e))
            return

        if credit.stops:
            report.stopped_location_ids.add(location.id)
        report.add_applied(
            location.id, credit.amount, RewardReason.VIP_FEE_SHARE.value, f"vip {vip}"
        )
