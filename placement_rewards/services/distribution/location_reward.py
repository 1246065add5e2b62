"""
Daily location reward distributor.

Credits every running slot with its tick of daily yield, then pays the
sponsor chain a commission on that yield. Each slot and each ancestor hop
is its own transaction; a failing unit is rolled back, reported as
skipped and the pass moves on.
"""

from placement_rewards.config.settings import settings
from placement_rewards.models.enums import RewardReason
from placement_rewards.models.location import Location
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.formulas import (
    location_tick_reward,
    referral_commission,
    referral_level_unlocked,
)
from placement_rewards.services.placement.accountant import PlacementAccountant, RewardTag
from placement_rewards.services.referral.graph import ReferralGraph
from placement_rewards.services.reward_config import ConfigSnapshot, LocationRewardConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.exceptions import is_run_fatal


class LocationRewardDistributor(BaseService):
    """Daily yield and sponsor commission of running slots."""

    def __init__(
        self,
        ledger: Ledger,
        max_depth: int | None = None,
        referral_levels: int | None = None,
    ) -> None:
        super().__init__(ledger)
        self.accountant = PlacementAccountant(ledger, max_depth)
        self.graph = ReferralGraph(ledger.recommends)
        self.referral_levels = referral_levels or settings.max_referral_depth

    @log_operation
    async def run(self) -> RunReport:
        """
        Run one daily distribution tick.

        Returns:
            Report of credited and skipped units

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, LocationRewardConfig.KEYS)
        config = LocationRewardConfig.from_snapshot(snapshot)
        report = RunReport(procedure="daily_location_reward")

        running = await self.ledger.locations.list_running()
        self.logger.info(f"Daily location reward over {len(running)} running slots")

        for location in running:
            await self._reward_location(location, config, report)

        for location in running:
            await self._reward_sponsors(location, config, report)

        self.logger.info(report.summary())
        return report

    async def _reward_location(
        self, location: Location, config: LocationRewardConfig, report: RunReport
    ) -> None:
        """Credit one slot with its own tick of yield."""
        reward = location_tick_reward(location.usdt, config.location_reward_rate)
        if reward <= 0 or config.price.secondary(reward) <= 0:
            report.add_skipped(location.id, "zero_reward")
            return

        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(location.id)
                if fresh is None:
                    report.add_skipped(location.id, "not_running")
                    return
                credit = await self.accountant.credit(
                    fresh,
                    reward,
                    RewardTag(reason=RewardReason.LOCATION),
                    config.price,
                    config.exchange_rate,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error rewarding location {location.id}: {e}",
                extra={"location_id": location.id, "user_id": location.user_id},
            )
            report.add_skipped(location.id, "error", str(e))
            return

        if credit.stops:
            report.stopped_location_ids.add(location.id)
        report.add_applied(location.id, credit.amount, RewardReason.LOCATION.value)

    async def _reward_sponsors(
        self, location: Location, config: LocationRewardConfig, report: RunReport
    ) -> None:
        """Walk the sponsor chain of a slot owner, closest sponsor first."""
        ancestors = await self.graph.closest_ancestors(location.user_id, self.referral_levels)

        for level_index, ancestor_id in enumerate(ancestors):
            level_rate = config.level_rates[level_index]
            if level_rate <= 0:
                continue

            slots = await self.ledger.locations.list_by_user(ancestor_id)
            target = next((slot for slot in slots if slot.is_running), None)
            if target is None:
                continue
            if target.id in report.stopped_location_ids:
                continue
            if not referral_level_unlocked(level_index, len(slots)):
                continue

            commission = referral_commission(
                location.usdt, target.usdt, config.location_reward_rate, level_rate
            )
            if commission <= 0 or config.price.secondary(commission) <= 0:
                continue

            await self._credit_sponsor(location, target, level_index, commission, config, report)

    async def _credit_sponsor(
        self,
        location: Location,
        target: Location,
        level_index: int,
        commission: int,
        config: LocationRewardConfig,
        report: RunReport,
    ) -> None:
        """Credit one ancestor slot in its own transaction."""
        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(target.id)
                if fresh is None:
                    report.add_skipped(target.id, "not_running")
                    return
                credit = await self.accountant.credit(
                    fresh,
                    commission,
                    RewardTag(
                        reason=RewardReason.RECOMMEND_LOCATION,
                        type_record_id=location.id,
                        reason_location_id=location.id,
                        level=level_index + 1,
                    ),
                    config.price,
                    config.exchange_rate,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying sponsor commission to location {target.id}: {e}",
                extra={
                    "location_id": target.id,
                    "child_location_id": location.id,
                    "level": level_index + 1,
                },
            )
            report.add_skipped(target.id, "error", str(e))
            return

        if credit.stops:
            report.stopped_location_ids.add(target.id)
        report.add_applied(
            target.id,
            credit.amount,
            RewardReason.RECOMMEND_LOCATION.value,
            f"level {level_index + 1} from location {location.id}",
        )
