"""
Referral graph.

Ancestor chains and subtree membership over materialized referral paths.
The graph is read-only during a run, so chains are cached per instance.
"""

from placement_rewards.models.referral import UserRecommend
from placement_rewards.repositories.referral_repository import UserRecommendRepository


class ReferralGraph:
    """Sponsor tree lookups."""

    def __init__(self, recommends: UserRecommendRepository) -> None:
        self.recommends = recommends
        self._chains: dict[int, list[int]] = {}

    async def ancestor_chain(self, user_id: int) -> list[int]:
        """
        Get ancestors of a user.

        Args:
            user_id: User ID

        Returns:
            Ancestor ids ordered root -> direct sponsor, empty when unknown
        """
        if user_id not in self._chains:
            record = await self.recommends.get_by_user(user_id)
            self._chains[user_id] = record.ancestor_ids if record else []
        return self._chains[user_id]

    async def closest_ancestors(self, user_id: int, limit: int | None = None) -> list[int]:
        """
        Get ancestors ordered direct sponsor first.

        Args:
            user_id: User ID
            limit: Maximum number of levels

        Returns:
            Ancestor ids, closest first
        """
        chain = [ancestor for ancestor in reversed(await self.ancestor_chain(user_id)) if ancestor > 0]
        return chain[:limit] if limit is not None else chain

    async def sponsor_of(self, user_id: int) -> int | None:
        """Direct sponsor id or None."""
        chain = await self.ancestor_chain(user_id)
        return chain[-1] if chain else None

    async def direct_descendants(self, user_id: int) -> list[int]:
        """Ids of users sponsored directly by ``user_id``."""
        record = await self.recommends.get_by_user(user_id)
        if record is None:
            return []
        return [child.user_id for child in await self.recommends.list_direct(record.subtree_prefix)]

    async def descendant_branches(self, user_id: int) -> dict[int, list[int]]:
        """
        Split the subtree of a user by direct descendant.

        Args:
            user_id: User ID

        Returns:
            Mapping direct descendant id -> [that id, *its whole subtree]
        """
        record = await self.recommends.get_by_user(user_id)
        if record is None:
            return {}

        branches: dict[int, list[int]] = {}
        for child in await self.recommends.list_direct(record.subtree_prefix):
            subtree = await self.recommends.list_subtree(child.subtree_prefix)
            branches[child.user_id] = [child.user_id, *(member.user_id for member in subtree)]
        return branches

    async def register(self, user_id: int, sponsor_id: int | None) -> UserRecommend:
        """
        Register a user under a sponsor.

        Args:
            user_id: New user
            sponsor_id: Sponsor, None for a root user

        Returns:
            Created referral record

        Raises:
            ValueError: If the sponsor has no referral record
        """
        sponsor = None
        if sponsor_id is not None:
            sponsor = await self.recommends.get_by_user(sponsor_id)
            if sponsor is None:
                raise ValueError(f"Sponsor {sponsor_id} is not registered")
        return await self.recommends.create_for(user_id, sponsor)
