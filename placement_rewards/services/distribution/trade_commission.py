"""
Trade commission cascade.

When a trade settles its fee is shared up the trader's sponsor chain,
closest sponsor first. Three modes compete at every hop:

- team bonus: the first sponsor of each higher VIP tier receives the rate
  difference between its tier and the tiers already paid
- peer bonus: once a tier was paid, the next sponsor holding the same tier
  receives the level rate, once per tier
- recommend bonus: the first and second sponsor receive their rate when
  their liquid balance reaches the floor

Every payout is its own transaction.
"""

from dataclasses import dataclass, field

from placement_rewards.config.constants import MICRO_UNIT, VIP_MAX
from placement_rewards.models.enums import RewardReason
from placement_rewards.models.trade import Trade
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.referral.graph import ReferralGraph
from placement_rewards.services.reward_config import ConfigSnapshot, TradeCommissionConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.exceptions import is_run_fatal


@dataclass
class ChainState:
    """State threaded through one sponsor chain walk."""
    last_vip: int = 1
    paid_team_rate: int = 0
    tier_paid: bool = False
    peer_slots: dict[int, int] = field(
        default_factory=lambda: {vip: 1 for vip in range(2, VIP_MAX + 1)}
    )


@dataclass(frozen=True)
class Payout:
    """One planned commission payout."""
    reason: RewardReason
    rate: int


class TradeCommissionService(BaseService):
    """Settles trades and pays the sponsor chain."""

    def __init__(self, ledger: Ledger) -> None:
        super().__init__(ledger)
        self.graph = ReferralGraph(ledger.recommends)

    @log_operation
    async def run(self) -> RunReport:
        """
        Settle every trade still in default status.

        Returns:
            Report of payouts and skipped units

        Raises:
            RunPreconditionError: If configuration cannot be read
        """
        snapshot = await ConfigSnapshot.load(self.ledger.configs, TradeCommissionConfig.KEYS)
        config = TradeCommissionConfig.from_snapshot(snapshot)
        report = RunReport(procedure="trade_commission")

        trades = await self.ledger.trades.list_unsettled()
        self.logger.info(f"Settling {len(trades)} trades")

        for trade in trades:
            try:
                async with self.ledger.transaction():
                    claimed = await self.ledger.trades.claim(trade.id)
            except Exception as e:
                self.logger.error(
                    f"Error claiming trade {trade.id}: {e}",
                    extra={"trade_id": trade.id},
                )
                report.add_skipped(trade.id, "error", str(e))
                continue

            if not claimed:
                report.add_skipped(trade.id, "already_settled")
                continue

            await self._pay_chain(trade, config, report)

        self.logger.info(report.summary())
        return report

    async def _pay_chain(
        self, trade: Trade, config: TradeCommissionConfig, report: RunReport
    ) -> None:
        """Walk the sponsor chain of the trader."""
        reward_amount = trade.amount_csd * config.withdraw_rate // 100
        reward_amount_b = trade.amount_hbs * config.withdraw_rate // 100
        state = ChainState()

        ancestors = await self.graph.closest_ancestors(trade.user_id)
        vips = await self.ledger.user_infos.get_vips(ancestors)

        for hop, ancestor_id in enumerate(ancestors):
            vip = vips.get(ancestor_id)
            if vip is None:
                continue

            payout, advances_tier = self._plan_hop(vip, state, config)
            if payout is None and hop < 2:
                payout = await self._plan_recommend(hop, ancestor_id, config)
            if payout is None:
                continue

            paid = await self._pay(
                trade, ancestor_id, hop, payout, reward_amount, reward_amount_b, report
            )
            if paid and advances_tier:
                self._advance(vip, payout, state, config)

    def _plan_hop(
        self, vip: int, state: ChainState, config: TradeCommissionConfig
    ) -> tuple[Payout | None, bool]:
        """
        Choose the team or peer bonus of a hop.

        Returns:
            (payout, advances_tier); payout None when neither mode applies
        """
        if state.last_vip > vip:
            return None, False

        if state.last_vip < vip and state.paid_team_rate <= config.team_rate_ceiling:
            tier_rate = config.team_vip_rates.get(vip, 0)
            return Payout(RewardReason.WITHDRAW_TEAM_VIP, tier_rate - state.paid_team_rate), True

        if state.tier_paid and state.last_vip == vip and state.peer_slots.get(vip, 0) > 0:
            return Payout(RewardReason.WITHDRAW_TEAM_VIP_LEVEL, config.level_rate), True

        return None, False

    async def _plan_recommend(
        self, hop: int, ancestor_id: int, config: TradeCommissionConfig
    ) -> Payout | None:
        """Recommend bonus of the first two sponsors."""
        balance = await self.ledger.balances.get_by_user(ancestor_id)
        if balance is None or balance.balance_usdt // MICRO_UNIT < config.recommend_balance_floor:
            return None
        if hop == 0:
            return Payout(RewardReason.WITHDRAW_RECOMMEND, config.recommend_rate)
        return Payout(RewardReason.WITHDRAW_SECOND_RECOMMEND, config.recommend_second_rate)

    @staticmethod
    def _advance(
        vip: int, payout: Payout, state: ChainState, config: TradeCommissionConfig
    ) -> None:
        """Thread chain state past a paid team or peer bonus."""
        if payout.reason == RewardReason.WITHDRAW_TEAM_VIP:
            state.paid_team_rate = config.team_vip_rates.get(vip, 0)
            state.tier_paid = True
        else:
            state.peer_slots[vip] -= 1
        state.last_vip = vip

    async def _pay(
        self,
        trade: Trade,
        ancestor_id: int,
        hop: int,
        payout: Payout,
        reward_amount: int,
        reward_amount_b: int,
        report: RunReport,
    ) -> bool:
        """
        Pay one hop in its own transaction.

        Returns:
            True when the payout committed or had nothing to pay
        """
        amount = reward_amount * payout.rate // 100
        amount_b = reward_amount_b * payout.rate // 100
        if amount <= 0 and amount_b <= 0:
            return True

        try:
            async with self.ledger.transaction():
                await self.ledger.balances.credit(
                    ancestor_id, usdt=max(amount, 0), dhb=max(amount_b, 0)
                )
                await self.ledger.rewards.append_withdraw_commission(
                    user_id=ancestor_id,
                    amount=max(amount, 0),
                    amount_b=max(amount_b, 0),
                    reason=payout.reason.value,
                    trade_id=trade.id,
                    level=hop + 1,
                )
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error paying trade {trade.id} commission to user {ancestor_id}: {e}",
                extra={"trade_id": trade.id, "user_id": ancestor_id, "hop": hop + 1},
            )
            report.add_skipped(ancestor_id, "error", str(e))
            return False

        report.add_applied(
            ancestor_id, amount, payout.reason.value, f"trade {trade.id} hop {hop + 1}"
        )
        return True
