"""
Reward repository.

Append-only access to the reward ledger.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.models.enums import RewardType
from placement_rewards.models.reward import Reward
from placement_rewards.repositories.base import BaseRepository


class RewardRepository(BaseRepository[Reward]):
    """Reward repository. Rows are never updated."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward repository."""
        super().__init__(Reward, session)

    async def append_reward(
        self,
        user_id: int,
        amount: int,
        amount_b: int,
        reason: str,
        type: str,
        type_record_id: int,
        reason_location_id: int = 0,
        level: int = 0,
    ) -> Reward:
        """
        Append a payout row.

        Args:
            user_id: Beneficiary
            amount: Primary currency amount
            amount_b: Secondary currency amount
            reason: RewardReason value
            type: RewardType value
            type_record_id: Triggering record ID
            reason_location_id: Slot credited or that triggered the payout
            level: Commission level, area tier or pool rank

        Returns:
            Created row
        """
        return await self.create(
            user_id=user_id,
            amount=amount,
            amount_b=amount_b,
            reason=reason,
            type=type,
            type_record_id=type_record_id,
            reason_location_id=reason_location_id,
            level=level,
        )

    async def append_withdraw_commission(
        self,
        user_id: int,
        amount: int,
        amount_b: int,
        reason: str,
        trade_id: int,
        level: int = 0,
    ) -> Reward:
        """Append a trade commission row."""
        return await self.append_reward(
            user_id=user_id,
            amount=amount,
            amount_b=amount_b,
            reason=reason,
            type=RewardType.TRADE.value,
            type_record_id=trade_id,
            level=level,
        )

    async def list_by_user(self, user_id: int) -> list[Reward]:
        """Get payouts of a user ordered by id."""
        return await self.find_by(user_id=user_id)
