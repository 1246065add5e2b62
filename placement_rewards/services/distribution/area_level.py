"""
User area level recompute.

A user's area level follows the placement volume of every direct
descendant branch except the strongest one. Levels only go up.
"""

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.formulas import small_area_volume
from placement_rewards.services.referral.graph import ReferralGraph
from placement_rewards.services.reward_config import AreaLevelConfig, ConfigSnapshot
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.exceptions import is_run_fatal


def area_level_for(volume: int, thresholds: tuple[int, ...]) -> int:
    """
    Highest area level reached by a small-area volume.

    Args:
        volume: Small-area volume in micro-units
        thresholds: Level thresholds in whole units, level 1 first

    Returns:
        Level 0..len(thresholds); a zero threshold never qualifies
    """
    level = 0
    for index, threshold in enumerate(thresholds, start=1):
        if 0 < threshold and threshold * MICRO_UNIT <= volume:
            level = index
    return level


class AreaLevelService(BaseService):
    """Raises user area levels from branch volumes."""

    def __init__(self, ledger: Ledger) -> None:
        super().__init__(ledger)
        self.graph = ReferralGraph(ledger.recommends)

    async def small_area_of(self, user_id: int) -> int:
        """Placement volume under every direct branch of a user except the strongest."""
        children = await self.graph.direct_descendants(user_id)
        areas = await self.ledger.areas.get_many(children)
        return small_area_volume([area.volume for area in areas.values()])

    @log_operation
    async def run(self) -> RunReport:
        """
        Recompute every user's area level.

        Returns:
            Report of raised and skipped users

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, AreaLevelConfig.KEYS)
        config = AreaLevelConfig.from_snapshot(snapshot)
        report = RunReport(procedure="area_level")

        for record in await self.ledger.recommends.list_all():
            user_id = record.user_id
            try:
                volume = await self.small_area_of(user_id)
                level = area_level_for(volume, config.thresholds)
                if level <= 0:
                    continue

                async with self.ledger.transaction():
                    if await self.ledger.areas.get_by_user(user_id) is None:
                        await self.ledger.areas.add_amounts(user_id)
                    raised = await self.ledger.areas.raise_level(user_id, level)
            except Exception as e:
                if is_run_fatal(e):
                    raise
                self.logger.error(
                    f"Error recomputing area level of user {user_id}: {e}",
                    extra={"user_id": user_id},
                )
                report.add_skipped(user_id, "error", str(e))
                continue

            if raised:
                report.add_applied(user_id, 0, "area_level", f"level {level}")

        self.logger.info(report.summary())
        return report
