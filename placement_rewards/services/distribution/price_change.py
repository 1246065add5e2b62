"""
Price change adjustment.

Revalues the secondary currency holdings of every user with a running
slot after the secondary price moved. A rise credits the slot (and may
fill it), a fall debits it down to zero at most. The triggering event is
acknowledged before any user is touched so it is never applied twice.
"""

from placement_rewards.models.config import PriceChange
from placement_rewards.models.enums import RewardReason, RewardType
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, log_operation
from placement_rewards.services.distribution.formulas import price_change_delta
from placement_rewards.services.placement.accountant import PlacementAccountant, RewardTag
from placement_rewards.services.reward_config import ConfigSnapshot, PriceChangeConfig
from placement_rewards.services.run_report import RunReport
from placement_rewards.utils.exceptions import RunPreconditionError, is_run_fatal


class PriceChangeService(BaseService):
    """Applies pending secondary currency price changes."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        super().__init__(ledger)
        self.accountant = PlacementAccountant(ledger, max_depth)

    @log_operation
    async def run(self) -> RunReport:
        """
        Apply the oldest pending price change.

        Returns:
            Report of adjusted and skipped users

        Raises:
            RunPreconditionError: If config is unreadable or the price
                baseline is invalid
        """
        report = RunReport(procedure="price_change")

        event = await self.ledger.price_changes.get_pending()
        if event is None:
            self.logger.info("No pending price change")
            return report

        snapshot = await ConfigSnapshot.load(self.ledger.configs, PriceChangeConfig.KEYS)
        config = PriceChangeConfig.from_snapshot(snapshot)
        if event.price <= 0 or event.origin <= 0 or config.b_price_base <= 0:
            raise RunPreconditionError(
                f"Invalid price change {event.id}: origin={event.origin}, "
                f"price={event.price}, base={config.b_price_base}"
            )

        async with self.ledger.transaction():
            acknowledged = await self.ledger.price_changes.mark_processed(event.id)
        if not acknowledged:
            self.logger.warning(f"Price change {event.id} already processed")
            return report

        self.logger.info(
            f"Applying price change {event.id}: {event.origin} -> {event.price}",
            extra={"price_change_id": event.id},
        )
        if event.price == event.origin:
            return report

        for user_id in await self.ledger.locations.list_running_user_ids():
            await self._adjust_user(user_id, event, config, report)

        self.logger.info(report.summary())
        return report

    async def _adjust_user(
        self,
        user_id: int,
        event: PriceChange,
        config: PriceChangeConfig,
        report: RunReport,
    ) -> None:
        """Revalue one user's holdings in its own transaction."""
        location = await self.ledger.locations.get_running_by_user(user_id)
        if location is None:
            return
        balance = await self.ledger.balances.get_by_user(user_id)
        if balance is None or balance.balance_dhb <= 0:
            return

        if event.is_rise:
            delta = price_change_delta(
                balance.balance_dhb, config.b_price_base, event.price, event.origin
            )
        else:
            delta = price_change_delta(
                balance.balance_dhb, config.b_price_base, event.origin, event.price
            )
        if delta <= 0:
            return

        try:
            async with self.ledger.transaction():
                fresh = await self.accountant.load_running(location.id)
                if fresh is None:
                    report.add_skipped(user_id, "not_running")
                    return
                if event.is_rise:
                    credit = await self.accountant.credit(
                        fresh,
                        delta,
                        RewardTag(
                            reason=RewardReason.PRICE_CHANGE_UP,
                            type=RewardType.PRICE_CHANGE,
                            type_record_id=event.id,
                        ),
                        None,
                        config.exchange_rate,
                    )
                    applied, stopped = credit.amount, credit.stops
                else:
                    applied = await self.accountant.debit(
                        fresh,
                        delta,
                        RewardTag(
                            reason=RewardReason.PRICE_CHANGE_DOWN,
                            type=RewardType.PRICE_CHANGE,
                            type_record_id=event.id,
                        ),
                    )
                    stopped = False
        except Exception as e:
            if is_run_fatal(e):
                raise
            self.logger.error(
                f"Error applying price change {event.id} to user {user_id}: {e}",
                extra={"user_id": user_id, "location_id": location.id},
            )
            report.add_skipped(user_id, "error", str(e))
            return

        if stopped:
            report.stopped_location_ids.add(location.id)
        reason = RewardReason.PRICE_CHANGE_UP if event.is_rise else RewardReason.PRICE_CHANGE_DOWN
        report.add_applied(user_id, applied, reason.value, f"location {location.id}")
