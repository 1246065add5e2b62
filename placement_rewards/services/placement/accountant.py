"""
Placement accountant.

Applies planned credits and debits to slots inside the caller's
transaction: capacity update, reward row, balance credit, the exchange of
unreconciled capacity and the stop-cascade when a slot fills.
"""

from dataclasses import dataclass

from loguru import logger

from placement_rewards.config.settings import settings
from placement_rewards.models.enums import LocationStatus, RewardReason, RewardType
from placement_rewards.models.location import Location
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.placement.capacity import (
    CapacityCredit,
    plan_credit,
    plan_debit,
)
from placement_rewards.services.placement.stop_cascade import cascade_stop
from placement_rewards.services.reward_config import FeeSplit, PriceRatio
from placement_rewards.utils.datetime_utils import business_now
from placement_rewards.utils.exceptions import LookupMissError


@dataclass(frozen=True)
class RewardTag:
    """How a credit is recorded in the reward ledger."""
    reason: RewardReason
    type: RewardType = RewardType.LOCATION
    type_record_id: int = 0
    reason_location_id: int = 0
    level: int = 0


class PlacementAccountant:
    """Capacity mutations of placement slots."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        """
        Initialize accountant.

        Args:
            ledger: Placement and reward ledger
            max_depth: Stop-cascade hop bound, settings value when None
        """
        self.ledger = ledger
        self.max_depth = max_depth or settings.max_placement_depth

    async def load_running(self, location_id: int) -> Location | None:
        """
        Reload a slot with a row lock.

        Returns:
            The slot while it is running, None once stopped

        Raises:
            LookupMissError: If the slot does not exist
        """
        location = await self.ledger.locations.get_by_id(location_id, for_update=True)
        if location is None:
            raise LookupMissError(f"Location {location_id} not found")
        if not location.is_running:
            return None
        return location

    async def credit(
        self,
        location: Location,
        amount: int,
        tag: RewardTag,
        price: PriceRatio | FeeSplit | None,
        exchange_rate: int,
    ) -> CapacityCredit:
        """
        Credit a running slot under the fill-to-cap rule.

        Args:
            location: Running slot loaded in the current transaction
            amount: Requested credit
            tag: Reward row classification
            price: Balance payout of the credit, None for credits paying no balance
            exchange_rate: Fee percent of the exchange on stop

        Returns:
            The applied credit
        """
        plan = plan_credit(location, amount, price)
        status = LocationStatus.STOPPED if plan.stops else LocationStatus.RUNNING
        stop_date = business_now() if plan.stops else None

        updated = await self.ledger.locations.update_capacity_and_status(
            location.id,
            status.value,
            plan.amount,
            plan.exchange_amount,
            plan.secondary_amount,
            stop_date,
        )

        if plan.amount > 0:
            if plan.secondary_amount > 0 or plan.primary_amount > 0:
                await self.ledger.balances.credit(
                    location.user_id,
                    usdt=plan.primary_amount,
                    dhb=plan.secondary_amount,
                )
            await self.ledger.rewards.append_reward(
                user_id=location.user_id,
                amount=plan.amount,
                amount_b=plan.secondary_amount,
                reason=tag.reason.value,
                type=tag.type.value,
                type_record_id=tag.type_record_id or location.id,
                reason_location_id=tag.reason_location_id or location.id,
                level=tag.level,
            )

        if plan.stops:
            await self._on_stop(updated, plan, exchange_rate)

        return plan

    async def debit(self, location: Location, amount: int, tag: RewardTag) -> int:
        """
        Debit a running slot, clamped at zero.

        Args:
            location: Running slot loaded in the current transaction
            amount: Requested debit
            tag: Reward row classification

        Returns:
            The applied debit
        """
        applied = plan_debit(location, amount)
        if applied <= 0:
            return 0

        await self.ledger.locations.update_capacity_and_status(
            location.id, location.status, -applied, 0, 0
        )
        await self.ledger.rewards.append_reward(
            user_id=location.user_id,
            amount=applied,
            amount_b=0,
            reason=tag.reason.value,
            type=tag.type.value,
            type_record_id=tag.type_record_id or location.id,
            reason_location_id=location.id,
            level=tag.level,
        )
        return applied

    async def _on_stop(
        self, location: Location, plan: CapacityCredit, exchange_rate: int
    ) -> None:
        """Exchange unreconciled capacity and cascade the stop upward."""
        if plan.exchange_amount > 0:
            fee = plan.exchange_amount * exchange_rate // 100
            payout = plan.exchange_amount - fee
            await self.ledger.balances.credit(location.user_id, usdt=payout)
            await self.ledger.rewards.append_reward(
                user_id=location.user_id,
                amount=payout,
                amount_b=0,
                reason=RewardReason.EXCHANGE.value,
                type=RewardType.LOCATION.value,
                type_record_id=location.id,
                reason_location_id=location.id,
            )

        ancestors = await cascade_stop(self.ledger.locations, location, self.max_depth)
        logger.info(
            f"Location {location.id} stopped",
            extra={
                "location_id": location.id,
                "user_id": location.user_id,
                "ancestors": len(ancestors),
            },
        )
