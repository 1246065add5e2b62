"""
Area reward distributor.

Splits a share of yesterday's network placement volume across the slots
of each of the five area tiers, then pays the top-four sponsor pool.
"""

from placement_rewards.config.constants import AREA_TIERS, POOL_WINNERS
from placement_rewards.models.enums import RewardReason, RewardType
from placement_rewards.models.location import Location
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.formulas import (
    area_tier_share,
    qualifying_pair,
    sponsor_pool_total,
)
from placement_rewards.services.placement.accountant import PlacementAccountant, RewardTag
from placement_rewards.services.referral.graph import ReferralGraph
from placement_rewards.services.reward_config import AreaRewardConfig, ConfigSnapshot
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.datetime_utils import days_ago_window
from placement_rewards.utils.exceptions import is_run_fatal


def qualifies_for_tier(location: Location, tier: int, threshold: int) -> bool:
    """
    Check area tier membership.

    Args:
        location: Slot
        tier: Tier number 1..5
        threshold: Qualifying pair threshold of the tier

    Returns:
        True when the two smaller branch totals reach the threshold or the
        tier was reached before
    """
    pair = qualifying_pair(location.total, location.total_two, location.total_three)
    return threshold <= pair or location.last_level >= tier


class AreaRewardDistributor(BaseService):
    """Area tier rewards and the top-four sponsor pool."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        super().__init__(ledger)
        self.accountant = PlacementAccountant(ledger, max_depth)
        self.graph = ReferralGraph(ledger.recommends)

    @log_operation
    async def run(self) -> RunReport:
        """
        Run the area pass.

        Returns:
            Report of credited and skipped units

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, AreaRewardConfig.KEYS)
        config = AreaRewardConfig.from_snapshot(snapshot)
        report = RunReport(procedure="area_reward")

        yesterday_start, yesterday_end = days_ago_window(1)
        volume = await self.ledger.locations.sum_usdt_created_between(
            yesterday_start, yesterday_end
        )
        if volume <= 0:
            self.logger.info("No placements yesterday, area reward skipped")
            return report

        for tier in range(1, AREA_TIERS + 1):
            await self._reward_tier(tier, volume, config, report)

        await self._reward_sponsor_pool(volume, config, report)

        self.logger.info(report.summary())
        return report

    async def _reward_tier(
        self, tier: int, volume: int, config: AreaRewardConfig, report: RunReport
    ) -> None:
        """Credit every slot of one tier with an equal share."""
        threshold = config.thresholds[tier - 1]
        # Earlier tiers may have stopped slots, so membership is re-read
        running = await self.ledger.locations.list_running()
        members = [
            location for location in running
            if qualifies_for_tier(location, tier, threshold)
        ]
        share = area_tier_share(volume, config.shares[tier - 1], len(members))
        self.logger.info(
            f"Area tier {tier}: {len(members)} slots, share {share}",
            extra={"tier": tier, "members": len(members), "share": share},
        )
        if share <= 0 or config.price.secondary(share) <= 0:
            return

        for location in members:
            await self._credit_member(location, tier, threshold, share, config, report)

    async def _credit_member(
        self,
        location: Location,
        tier: int,
        threshold: int,
        share: int,
        config: AreaRewardConfig,
        report: RunReport,
    ) -> None:
        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(location.id)
                if fresh is None:
                    report.add_skipped(location.id, "not_running")
                    return
                reached = qualifying_pair(fresh.total, fresh.total_two, fresh.total_three)
                credit = await self.accountant.credit(
                    fresh,
                    share,
                    RewardTag(reason=RewardReason.AREA, level=tier),
                    config.price,
                    config.exchange_rate,
                )
                if 0 < threshold <= reached:
                    await self.ledger.locations.raise_last_level(location.id, tier)
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying area tier {tier} to location {location.id}: {e}",
                extra={"location_id": location.id, "tier": tier},
            )
            report.add_skipped(location.id, "error", str(e))
            return

        if credit.stops:
            report.stopped_location_ids.add(location.id)
        report.add_applied(location.id, credit.amount, RewardReason.AREA.value, f"tier {tier}")

    async def _reward_sponsor_pool(
        self, yesterday_volume: int, config: AreaRewardConfig, report: RunReport
    ) -> None:
        """Pay the four sponsors whose direct referrals placed the most yesterday."""
        before_start, before_end = days_ago_window(2)
        day_before_volume = await self.ledger.locations.sum_usdt_created_between(
            before_start, before_end
        )
        pool = sponsor_pool_total(yesterday_volume, day_before_volume, config.pool_rate)

        yesterday_start, yesterday_end = days_ago_window(1)
        sponsor_volumes: dict[int, int] = {}
        for location in await self.ledger.locations.list_created_between(
            yesterday_start, yesterday_end
        ):
            sponsor_id = await self.graph.sponsor_of(location.user_id)
            if sponsor_id is None or sponsor_id <= 0:
                continue
            sponsor_volumes[sponsor_id] = sponsor_volumes.get(sponsor_id, 0) + location.usdt

        # Volume descending, lower user id first on ties
        ranking = sorted(sponsor_volumes.items(), key=lambda item: (-item[1], item[0]))
        for rank, (sponsor_id, sponsor_volume) in enumerate(ranking[:POOL_WINNERS], start=1):
            amount = pool // 100 * config.pool_shares[rank - 1]
            if amount <= 0:
                continue

            try:
                async with self.ledger.transaction():
                    await self.ledger.balances.credit(sponsor_id, usdt=amount)
                    await self.ledger.rewards.append_reward(
                        user_id=sponsor_id,
                        amount=amount,
                        amount_b=0,
                        reason=RewardReason.AREA_TOP_FOUR.value,
                        type=RewardType.SYSTEM.value,
                        type_record_id=0,
                        level=rank,
                    )
            except Exception as e:
                self.logger.error(
                    f"Error paying sponsor pool rank {rank} to user {sponsor_id}: {e}",
                    extra={"user_id": sponsor_id, "rank": rank, "volume": sponsor_volume},
                )
                report.add_skipped(sponsor_id, "error", str(e))
                continue

            report.add_applied(
                sponsor_id, amount, RewardReason.AREA_TOP_FOUR.value, f"rank {rank}"
            )
