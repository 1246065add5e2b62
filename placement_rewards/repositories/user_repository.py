"""
User state repositories.

Data access layer for VIP state and liquid balances.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.models.user import UserBalance, UserInfo
from placement_rewards.repositories.base import BaseRepository
from placement_rewards.utils.exceptions import LedgerInvariantError, LookupMissError


class UserInfoRepository(BaseRepository[UserInfo]):
    """UserInfo repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user info repository."""
        super().__init__(UserInfo, session)

    async def get_by_user(self, user_id: int) -> UserInfo | None:
        """Get VIP state of a user."""
        return await self.get_by(user_id=user_id)

    async def list_all(self) -> list[UserInfo]:
        """Get every user info ordered by id."""
        return await self.find_by()

    async def list_unlocked(self) -> list[UserInfo]:
        """Get users whose VIP tier is computed automatically."""
        return await self.find_by(lock_vip=False)

    async def list_by_vips(self, vips: tuple[int, ...]) -> list[UserInfo]:
        """Get users holding one of the given VIP tiers ordered by user id."""
        stmt = (
            select(UserInfo)
            .where(UserInfo.vip.in_(vips))
            .order_by(UserInfo.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_vips(self, user_ids: list[int]) -> dict[int, int]:
        """
        Get VIP tiers for several users.

        Args:
            user_ids: User IDs

        Returns:
            Mapping user_id -> vip (missing users omitted)
        """
        if not user_ids:
            return {}
        stmt = select(UserInfo.user_id, UserInfo.vip).where(
            UserInfo.user_id.in_(user_ids)
        )
        result = await self.session.execute(stmt)
        return {row.user_id: row.vip for row in result.all()}

    async def set_vip(
        self, user_id: int, vip: int, lock_vip: bool | None = None
    ) -> None:
        """
        Update VIP tier.

        Args:
            user_id: User ID
            vip: New tier
            lock_vip: New lock flag, unchanged when None

        Raises:
            LookupMissError: If user info does not exist
        """
        values: dict[str, int | bool] = {"vip": vip}
        if lock_vip is not None:
            values["lock_vip"] = lock_vip
        stmt = (
            update(UserInfo)
            .where(UserInfo.user_id == user_id)
            .values(**values)
            .returning(UserInfo.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none() is None:
            raise LookupMissError(f"User info {user_id} not found")


class UserBalanceRepository(BaseRepository[UserBalance]):
    """UserBalance repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user balance repository."""
        super().__init__(UserBalance, session)

    async def get_by_user(self, user_id: int) -> UserBalance | None:
        """Get balances of a user."""
        return await self.get_by(user_id=user_id)

    async def credit(
        self, user_id: int, usdt: int = 0, dhb: int = 0
    ) -> UserBalance:
        """
        Add to liquid balances, creating the row on first credit.

        Args:
            user_id: User ID
            usdt: Primary currency delta
            dhb: Secondary currency delta

        Returns:
            Updated balance

        Raises:
            LedgerInvariantError: If a balance would drop below zero
        """
        balance = await self.get_by_user(user_id)
        if balance is None:
            balance = await self.create(user_id=user_id, balance_usdt=0, balance_dhb=0)

        if balance.balance_usdt + usdt < 0 or balance.balance_dhb + dhb < 0:
            raise LedgerInvariantError(f"Balance of user {user_id} would drop below zero")

        balance.balance_usdt += usdt
        balance.balance_dhb += dhb
        await self.session.flush()
        return balance
