"""
VIP tier recompute.

Nightly re-evaluation of every unlocked user's VIP tier from own balance,
team balance, withdrawal history and the VIP tiers held inside each
direct descendant's branch. Tiers are checked from 6 downward and the
first satisfied tier wins.
"""

from dataclasses import dataclass

from placement_rewards.config.constants import (
    MICRO_UNIT,
    VIP_HISTORY_RECOMMEND_MIN,
    VIP_MAX,
    VIP_MIN,
    VIP_QUALIFYING_BRANCHES_MIN,
)
from placement_rewards.models.user import UserInfo
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation, transaction
from placement_rewards.services.referral.graph import ReferralGraph
from placement_rewards.services.reward_config import ConfigSnapshot, VipConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.exceptions import LookupMissError, is_run_fatal


@dataclass(frozen=True)
class VipFacts:
    """
    Inputs of one user's tier evaluation.

    Attributes:
        own_balance: Liquid primary balance in whole units
        team_balance: Team balance in whole units
        history_recommend: Withdrawal history count
        branch_counts: VIP tier -> number of direct descendant branches
            holding at least one user of that tier
    """
    own_balance: int
    team_balance: int
    history_recommend: int
    branch_counts: dict[int, int]


def select_vip_tier(facts: VipFacts, config: VipConfig) -> int:
    """
    Pick the highest VIP tier whose conditions all hold.

    Tier t (3..6) needs team balance, at least two branches holding tier
    t-1, enough withdrawal history and own balance. Tier 2 has no branch
    condition, tier 1 only needs own balance.

    Args:
        facts: User aggregates
        config: Thresholds

    Returns:
        VIP tier 0..6
    """
    for tier in range(VIP_MAX, 2, -1):
        if (
            facts.team_balance >= config.team_balances[tier - 2]
            and facts.branch_counts.get(tier - 1, 0) >= VIP_QUALIFYING_BRANCHES_MIN
            and facts.history_recommend >= VIP_HISTORY_RECOMMEND_MIN
            and facts.own_balance >= config.balances[tier - 1]
        ):
            return tier

    if (
        facts.team_balance >= config.team_balances[0]
        and facts.history_recommend >= VIP_HISTORY_RECOMMEND_MIN
        and facts.own_balance >= config.balances[1]
    ):
        return 2

    if facts.own_balance >= config.balances[0]:
        return 1

    return VIP_MIN


class VipRecheckService(BaseService):
    """Recomputes and administers VIP tiers."""

    def __init__(self, ledger: Ledger) -> None:
        super().__init__(ledger)
        self.graph = ReferralGraph(ledger.recommends)

    @log_operation
    async def run(self) -> RunReport:
        """
        Recompute the tier of every unlocked user.

        Returns:
            Report of updated and skipped users

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, VipConfig.KEYS)
        config = VipConfig.from_snapshot(snapshot)
        report = RunReport(procedure="vip_recheck")

        for info in await self.ledger.user_infos.list_unlocked():
            try:
                facts = await self._collect_facts(info)
                vip = select_vip_tier(facts, config)
                if vip == info.vip:
                    continue
                async with self.ledger.transaction():
                    await self.ledger.user_infos.set_vip(info.user_id, vip)
            except Exception as e:
                if is_run_fatal(e):
                    raise
                self.logger.error(
                    f"Error recomputing VIP of user {info.user_id}: {e}",
                    extra={"user_id": info.user_id},
                )
                report.add_skipped(info.user_id, "error", str(e))
                continue

            report.add_applied(info.user_id, 0, "vip", f"{info.vip} -> {vip}")

        self.logger.info(report.summary())
        return report

    async def _collect_facts(self, info: UserInfo) -> VipFacts:
        """Gather balances and branch tier counts of one user."""
        branch_counts: dict[int, int] = {}
        for members in (await self.graph.descendant_branches(info.user_id)).values():
            vips = set((await self.ledger.user_infos.get_vips(members)).values())
            for vip in vips:
                branch_counts[vip] = branch_counts.get(vip, 0) + 1

        balance = await self.ledger.balances.get_by_user(info.user_id)
        own_balance = balance.balance_usdt // MICRO_UNIT if balance else 0

        return VipFacts(
            own_balance=own_balance,
            team_balance=info.team_csd_balance // MICRO_UNIT,
            history_recommend=info.history_recommend,
            branch_counts=branch_counts,
        )

    @transaction
    async def assign_manual_vip(self, user_id: int, vip: int) -> None:
        """
        Set a tier by hand and lock it against automatic recompute.

        Args:
            user_id: User ID
            vip: Tier 0..6

        Raises:
            ValueError: If tier is out of range
            LookupMissError: If the user has no info record
        """
        if not VIP_MIN <= vip <= VIP_MAX:
            raise ValueError(f"VIP tier must be {VIP_MIN}..{VIP_MAX}, got {vip}")
        await self.ledger.user_infos.set_vip(user_id, vip, lock_vip=True)
        self.logger.info(f"VIP of user {user_id} locked at {vip}")

    @transaction
    async def release_manual_vip(self, user_id: int) -> None:
        """
        Hand a user's tier back to the automatic recompute.

        Raises:
            LookupMissError: If the user has no info record
        """
        info = await self.ledger.user_infos.get_by_user(user_id)
        if info is None:
            raise LookupMissError(f"User info {user_id} not found")
        await self.ledger.user_infos.set_vip(user_id, info.vip, lock_vip=False)
        self.logger.info(f"VIP lock of user {user_id} released")
