"""
Referral repositories.

Data access layer for referral paths and user area aggregates.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.config.constants import PATH_SEPARATOR
from placement_rewards.models.referral import UserArea, UserRecommend
from placement_rewards.repositories.base import BaseRepository


class UserRecommendRepository(BaseRepository[UserRecommend]):
    """UserRecommend repository with path queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(UserRecommend, session)

    async def get_by_user(self, user_id: int) -> UserRecommend | None:
        """Get referral record of a user."""
        return await self.get_by(user_id=user_id)

    async def list_direct(self, prefix: str) -> list[UserRecommend]:
        """
        Get direct descendants.

        Args:
            prefix: Subtree prefix of the sponsor

        Returns:
            Records whose path equals the prefix
        """
        return await self.find_by(path=prefix)

    async def list_subtree(self, prefix: str) -> list[UserRecommend]:
        """
        Get every descendant.

        Args:
            prefix: Subtree prefix of the sponsor

        Returns:
            Records whose path starts with the prefix
        """
        stmt = (
            select(UserRecommend)
            .where(UserRecommend.path.startswith(prefix, autoescape=True))
            .order_by(UserRecommend.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[UserRecommend]:
        """Get every referral record ordered by id."""
        return await self.find_by()

    async def create_for(
        self, user_id: int, sponsor: UserRecommend | None
    ) -> UserRecommend:
        """
        Register a user under a sponsor.

        Args:
            user_id: New user ID
            sponsor: Sponsor referral record, None for a root user

        Returns:
            Created record
        """
        path = sponsor.subtree_prefix if sponsor else PATH_SEPARATOR
        return await self.create(user_id=user_id, path=path)


class UserAreaRepository(BaseRepository[UserArea]):
    """UserArea repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user area repository."""
        super().__init__(UserArea, session)

    async def get_by_user(self, user_id: int) -> UserArea | None:
        """Get area aggregate of a user."""
        return await self.get_by(user_id=user_id)

    async def get_many(self, user_ids: list[int]) -> dict[int, UserArea]:
        """
        Get area aggregates for several users.

        Args:
            user_ids: User IDs

        Returns:
            Mapping user_id -> UserArea (missing users omitted)
        """
        if not user_ids:
            return {}
        stmt = select(UserArea).where(UserArea.user_id.in_(user_ids))
        result = await self.session.execute(stmt)
        return {area.user_id: area for area in result.scalars().all()}

    async def add_amounts(
        self, user_id: int, amount: int = 0, self_amount: int = 0
    ) -> UserArea:
        """
        Increase area aggregates, creating the row on first use.

        Args:
            user_id: User ID
            amount: Subtree placement volume to add
            self_amount: Own placement volume to add

        Returns:
            Updated aggregate
        """
        area = await self.get_by_user(user_id)
        if area is None:
            return await self.create(
                user_id=user_id, amount=amount, self_amount=self_amount, level=0
            )
        area.amount += amount
        area.self_amount += self_amount
        await self.session.flush()
        return area

    async def raise_level(self, user_id: int, level: int) -> bool:
        """
        Raise area level, never lowering it.

        Args:
            user_id: User ID
            level: Candidate level

        Returns:
            True if the level changed
        """
        stmt = (
            update(UserArea)
            .where(UserArea.user_id == user_id)
            .where(UserArea.level < level)
            .values(level=level)
            .returning(UserArea.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
