"""
Recommend area reward.

Pays four levels of users a percent of yesterday's network placement
volume. A user belongs to every level up to their area level: the stored
level once one was raised, otherwise the level their small area reaches
today. Each level's percent is split equally among its members and
credited to each member's latest running slot under the fill-to-cap rule.
The applied credit is paid out in both currencies.
"""

from placement_rewards.config.constants import USER_AREA_LEVELS
from placement_rewards.models.enums import RewardReason, RewardType
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.area_level import AreaLevelService, area_level_for
from placement_rewards.services.distribution.formulas import recommend_area_share
from placement_rewards.services.placement.accountant import PlacementAccountant, RewardTag
from placement_rewards.services.reward_config import ConfigSnapshot, RecommendAreaRewardConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.datetime_utils import days_ago_window
from placement_rewards.utils.exceptions import is_run_fatal


class RecommendAreaRewardService(BaseService):
    """Daily recommend area levels payout."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        super().__init__(ledger)
        self.accountant = PlacementAccountant(ledger, max_depth)
        self.levels = AreaLevelService(ledger)

    @log_operation
    async def run(self) -> RunReport:
        """
        Run the recommend area pass over yesterday's volume.

        Returns:
            Report of credited and skipped users

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(
            self.ledger.configs, RecommendAreaRewardConfig.KEYS
        )
        config = RecommendAreaRewardConfig.from_snapshot(snapshot)
        report = RunReport(procedure="recommend_area_reward")

        start, end = days_ago_window(1)
        volume = await self.ledger.locations.sum_usdt_created_between(start, end)
        if volume <= 0:
            self.logger.info("No placements yesterday, recommend area reward skipped")
            return report

        members = await self._level_members(config)
        for level in range(1, USER_AREA_LEVELS + 1):
            user_ids = members[level]
            share = recommend_area_share(volume, config.rates[level - 1], len(user_ids))
            self.logger.info(
                f"Recommend area level {level}: {len(user_ids)} users, share {share}",
                extra={"level": level, "members": len(user_ids), "share": share},
            )
            if share <= 0:
                continue
            for user_id in user_ids:
                await self._credit_member(user_id, level, share, config, report)

        self.logger.info(report.summary())
        return report

    async def user_level(self, user_id: int, thresholds: tuple[int, ...]) -> int:
        """
        Area level a user is paid at.

        Returns:
            Stored level when one was raised, else the level reached by the
            current small area, capped at the number of paid levels
        """
        area = await self.ledger.areas.get_by_user(user_id)
        if area is not None and area.level > 0:
            return min(area.level, USER_AREA_LEVELS)
        volume = await self.levels.small_area_of(user_id)
        return area_level_for(volume, thresholds)

    async def _level_members(
        self, config: RecommendAreaRewardConfig
    ) -> dict[int, list[int]]:
        """Users of each level, ordered by user id; every level below one's own included."""
        members: dict[int, list[int]] = {level: [] for level in range(1, USER_AREA_LEVELS + 1)}
        for record in await self.ledger.recommends.list_all():
            level = await self.user_level(record.user_id, config.thresholds)
            for reached in range(1, level + 1):
                members[reached].append(record.user_id)
        for user_ids in members.values():
            user_ids.sort()
        return members

    async def _credit_member(
        self,
        user_id: int,
        level: int,
        share: int,
        config: RecommendAreaRewardConfig,
        report: RunReport,
    ) -> None:
        location = await self.ledger.locations.get_running_by_user(user_id)
        if location is None:
            report.add_skipped(user_id, "no_running_slot")
            return

        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(location.id)
                if fresh is None:
                    report.add_skipped(user_id, "not_running")
                    return
                credit = await self.accountant.credit(
                    fresh,
                    share,
                    RewardTag(
                        reason=RewardReason.RECOMMEND_AREA,
                        type=RewardType.SYSTEM,
                        level=level,
                    ),
                    config.split,
                    config.exchange_rate,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying recommend area level {level} to user {user_id}: {e}",
                extra={"user_id": user_id, "location_id": location.id, "level": level},
            )
            report.add_skipped(user_id, "error", str(e))
            return

        if credit.stops:
            report.stopped_location_ids.add(location.id)
        report.add_applied(
            user_id, credit.amount, RewardReason.RECOMMEND_AREA.value, f"level {level}"
        )
