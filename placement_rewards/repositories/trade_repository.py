"""
Trade repository.

Data access layer for trades awaiting commission settlement.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.models.enums import TradeStatus
from placement_rewards.models.trade import Trade
from placement_rewards.repositories.base import BaseRepository


class TradeRepository(BaseRepository[Trade]):
    """Trade repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize trade repository."""
        super().__init__(Trade, session)

    async def list_unsettled(self) -> list[Trade]:
        """Get trades still in default status."""
        return await self.find_by(status=TradeStatus.DEFAULT.value)

    async def sum_amount_settled_between(self, start: datetime, end: datetime) -> int:
        """Primary currency volume of trades settled in a time window."""
        stmt = (
            select(func.coalesce(func.sum(Trade.amount_csd), 0))
            .where(Trade.status == TradeStatus.OK.value)
            .where(Trade.settled_at >= start)
            .where(Trade.settled_at < end)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def claim(self, trade_id: int) -> bool:
        """
        Move a trade from default to ok.

        Args:
            trade_id: Trade ID

        Returns:
            True if this call claimed the trade
        """
        stmt = (
            update(Trade)
            .where(Trade.id == trade_id)
            .where(Trade.status == TradeStatus.DEFAULT.value)
            .values(status=TradeStatus.OK.value, settled_at=datetime.now(UTC))
            .returning(Trade.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
