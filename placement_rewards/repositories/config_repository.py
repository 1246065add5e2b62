"""
Config repositories.

Data access layer for reward configuration and price change events.
"""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.models.config import Config, PriceChange
from placement_rewards.models.enums import PriceChangeStatus
from placement_rewards.repositories.base import BaseRepository


class ConfigRepository(BaseRepository[Config]):
    """Config repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize config repository."""
        super().__init__(Config, session)

    async def get_values(self, keys: list[str]) -> dict[str, str]:
        """
        Get raw config values.

        Args:
            keys: Config keys

        Returns:
            Mapping key -> value (absent keys omitted)
        """
        if not keys:
            return {}
        stmt = select(Config.key, Config.value).where(Config.key.in_(keys))
        result = await self.session.execute(stmt)
        return {row.key: row.value for row in result.all()}

    async def set_value(self, key: str, value: str) -> str | None:
        """
        Write a config value, creating the key if needed.

        Args:
            key: Config key
            value: New raw value

        Returns:
            Previous raw value or None for a new key
        """
        config = await self.get_by(key=key)
        if config is None:
            await self.create(key=key, value=value)
            return None
        previous = config.value
        config.value = value
        await self.session.flush()
        return previous


class PriceChangeRepository(BaseRepository[PriceChange]):
    """PriceChange repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize price change repository."""
        super().__init__(PriceChange, session)

    async def get_pending(self) -> PriceChange | None:
        """Get the oldest unprocessed price change."""
        stmt = (
            select(PriceChange)
            .where(PriceChange.status == PriceChangeStatus.PENDING.value)
            .order_by(PriceChange.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def record(self, origin: int, price: int) -> PriceChange:
        """Record a pending price change."""
        return await self.create(
            origin=origin, price=price, status=PriceChangeStatus.PENDING.value
        )

    async def mark_processed(self, price_change_id: int) -> bool:
        """
        Acknowledge a price change.

        Args:
            price_change_id: Event ID

        Returns:
            True if this call moved the event out of pending
        """
        stmt = (
            update(PriceChange)
            .where(PriceChange.id == price_change_id)
            .where(PriceChange.status == PriceChangeStatus.PENDING.value)
            .values(
                status=PriceChangeStatus.PROCESSED.value,
                processed_at=datetime.now(UTC),
            )
            .returning(PriceChange.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
