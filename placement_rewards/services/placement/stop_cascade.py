"""
Stop-cascade.

Walks the ``(top, top_num)`` back-pointers of the placement tree and keeps
every ancestor's branch totals in step with the slots beneath it. A
stopped slot's principal is subtracted, a new slot's principal is added.
"""

from collections.abc import Awaitable, Callable

from loguru import logger

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.models.location import Location
from placement_rewards.repositories.location_repository import LocationRepository
from placement_rewards.utils.exceptions import PlacementCycleError, PlacementDepthError


async def _walk_ancestors(
    location: Location,
    max_depth: int,
    visit: Callable[[int, int], Awaitable[Location]],
) -> list[int]:
    """
    Visit every ancestor slot, closest first.

    Args:
        location: Slot the walk starts from
        max_depth: Maximum number of hops
        visit: Callback(ancestor_id, branch_index) returning the ancestor

    Returns:
        Visited ancestor ids in walk order

    Raises:
        PlacementCycleError: If a slot is reached twice
        PlacementDepthError: If the chain is longer than max_depth
    """
    seen = {location.id}
    visited: list[int] = []
    top, top_num = location.top, location.top_num

    while top > 0 and top_num > 0:
        if top in seen:
            raise PlacementCycleError(location.id, top)
        if len(visited) >= max_depth:
            raise PlacementDepthError(location.id, max_depth)
        seen.add(top)

        ancestor = await visit(top, top_num)
        visited.append(top)
        top, top_num = ancestor.top, ancestor.top_num

    return visited


async def cascade_stop(
    locations: LocationRepository, location: Location, max_depth: int
) -> list[int]:
    """
    Remove a stopped slot's principal from every ancestor branch total.

    Must run in the same transaction as the status flip so that it fires
    exactly once per slot.

    Args:
        locations: Location repository
        location: Slot that just stopped
        max_depth: Maximum number of hops

    Returns:
        Ancestor ids that were decremented
    """
    amount = location.usdt // MICRO_UNIT

    async def subtract(ancestor_id: int, branch_index: int) -> Location:
        return await locations.subtract_ancestor_totals(ancestor_id, branch_index, amount)

    visited = await _walk_ancestors(location, max_depth, subtract)
    if visited:
        logger.debug(
            f"Stop-cascade of location {location.id} decremented {len(visited)} ancestors by {amount}"
        )
    return visited


async def propagate_open(
    locations: LocationRepository, location: Location, max_depth: int
) -> list[int]:
    """
    Add a new slot's principal to every ancestor branch total.

    Args:
        locations: Location repository
        location: Slot that was just opened
        max_depth: Maximum number of hops

    Returns:
        Ancestor ids that were incremented
    """
    amount = location.usdt // MICRO_UNIT

    async def add(ancestor_id: int, branch_index: int) -> Location:
        return await locations.add_ancestor_totals(ancestor_id, branch_index, amount)

    return await _walk_ancestors(location, max_depth, add)
