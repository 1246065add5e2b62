"""
Placement opener.

Opens a new slot on deposit and adds its principal to the aggregates the
distribution passes read: ancestor branch totals and user area volumes.
"""

from placement_rewards.config.settings import settings
from placement_rewards.models.enums import LocationStatus
from placement_rewards.models.location import Location
from placement_rewards.repositories.ledger import Ledger
from placement_rewards.services.base_service import BaseService, transaction
from placement_rewards.services.placement.stop_cascade import propagate_open
from placement_rewards.services.referral.graph import ReferralGraph


class PlacementOpener(BaseService):
    """Opens placement slots."""

    def __init__(self, ledger: Ledger, max_depth: int | None = None) -> None:
        super().__init__(ledger)
        self.max_depth = max_depth or settings.max_placement_depth
        self.graph = ReferralGraph(ledger.recommends)

    @transaction
    async def open_location(
        self,
        user_id: int,
        usdt: int,
        out_rate: int,
        top: int = 0,
        top_num: int = 0,
    ) -> Location:
        """
        Open a running slot.

        Args:
            user_id: Owner
            usdt: Principal in micro-units
            out_rate: Capacity as percent of principal
            top: Parent slot in the placement tree, 0 for a root slot
            top_num: Branch of the parent (1..3)

        Returns:
            Created slot

        Raises:
            ValueError: On non-positive principal or capacity, or a bad branch
        """
        if usdt <= 0:
            raise ValueError(f"Principal must be positive, got {usdt}")
        current_max = usdt * out_rate // 100
        if current_max <= 0:
            raise ValueError(f"Out rate {out_rate} gives no capacity for {usdt}")
        if top > 0 and top_num not in (1, 2, 3):
            raise ValueError(f"Branch must be 1..3, got {top_num}")

        location = await self.ledger.locations.create(
            user_id=user_id,
            status=LocationStatus.RUNNING.value,
            usdt=usdt,
            out_rate=out_rate,
            current=0,
            current_max=current_max,
            current_max_new=0,
            current_amount_b=0,
            top=top if top > 0 else 0,
            top_num=top_num if top > 0 else 0,
            total=0,
            total_two=0,
            total_three=0,
            last_level=0,
        )
        ancestors = await propagate_open(self.ledger.locations, location, self.max_depth)

        await self.ledger.areas.add_amounts(user_id, self_amount=usdt)
        for ancestor_id in await self.graph.ancestor_chain(user_id):
            await self.ledger.areas.add_amounts(ancestor_id, amount=usdt)

        self.logger.info(
            f"Opened location {location.id} for user {user_id}",
            extra={
                "location_id": location.id,
                "usdt": usdt,
                "current_max": current_max,
                "placement_ancestors": len(ancestors),
            },
        )
        return location
