"""
Location repository.

Data access layer for placement slots and their subtree totals.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_rewards.models.enums import LocationStatus
from placement_rewards.models.location import Location
from placement_rewards.repositories.base import BaseRepository
from placement_rewards.utils.exceptions import LedgerInvariantError, LookupMissError

# Branch index -> subtree total column
BRANCH_COLUMNS = {1: "total", 2: "total_two", 3: "total_three"}


def branch_column(branch_index: int) -> str:
    """
    Resolve subtree total column name of a branch.

    Args:
        branch_index: Branch number 1..3

    Returns:
        Column attribute name

    Raises:
        LedgerInvariantError: If branch index is out of range
    """
    try:
        return BRANCH_COLUMNS[branch_index]
    except KeyError:
        raise LedgerInvariantError(f"Unknown placement branch {branch_index}") from None


class LocationRepository(BaseRepository[Location]):
    """Location repository with ledger mutations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize location repository."""
        super().__init__(Location, session)

    async def list_running(self) -> list[Location]:
        """Get all running slots ordered by id."""
        return await self.find_by(status=LocationStatus.RUNNING.value)

    async def list_by_user(self, user_id: int) -> list[Location]:
        """Get every slot of a user ordered by id."""
        return await self.find_by(user_id=user_id)

    async def list_running_user_ids(self) -> list[int]:
        """Get owners of at least one running slot ordered by user id."""
        stmt = (
            select(Location.user_id)
            .where(Location.status == LocationStatus.RUNNING.value)
            .distinct()
            .order_by(Location.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_running_by_user(self, user_id: int) -> Location | None:
        """
        Get the latest running slot of a user.

        Args:
            user_id: User ID

        Returns:
            Running slot with the highest id or None
        """
        stmt = (
            select(Location)
            .where(Location.user_id == user_id)
            .where(Location.status == LocationStatus.RUNNING.value)
            .order_by(Location.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_created_between(
        self, start: datetime, end: datetime
    ) -> list[Location]:
        """
        Get slots opened inside a time window.

        Args:
            start: Window start (inclusive)
            end: Window end (exclusive)

        Returns:
            List of slots ordered by id
        """
        stmt = (
            select(Location)
            .where(Location.created_at >= start)
            .where(Location.created_at < end)
            .order_by(Location.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_usdt_created_between(self, start: datetime, end: datetime) -> int:
        """Network placement volume of a time window."""
        stmt = (
            select(func.coalesce(func.sum(Location.usdt), 0))
            .where(Location.created_at >= start)
            .where(Location.created_at < end)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def update_capacity_and_status(
        self,
        location_id: int,
        status: str,
        delta: int,
        new_max_delta: int,
        secondary_delta: int,
        stop_date: datetime | None = None,
    ) -> Location:
        """
        Apply a capacity credit or debit to a slot.

        Args:
            location_id: Slot ID
            status: New status
            delta: Change of ``current``
            new_max_delta: Change of ``current_max_new``
            secondary_delta: Change of ``current_amount_b``
            stop_date: Stop timestamp, kept unchanged when None

        Returns:
            Updated slot

        Raises:
            LookupMissError: If slot does not exist
        """
        values = {
            "status": status,
            "current": Location.current + delta,
            "current_max_new": Location.current_max_new + new_max_delta,
            "current_amount_b": Location.current_amount_b + secondary_delta,
        }
        if stop_date is not None:
            values["stop_date"] = stop_date

        stmt = (
            update(Location)
            .where(Location.id == location_id)
            .values(**values)
            .returning(Location)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        location = result.scalar_one_or_none()
        if location is None:
            raise LookupMissError(f"Location {location_id} not found")
        return location

    async def subtract_ancestor_totals(
        self, ancestor_id: int, branch_index: int, amount: int
    ) -> Location:
        """
        Remove a stopped slot's principal from an ancestor branch total.

        Args:
            ancestor_id: Ancestor slot ID
            branch_index: Branch of the ancestor the stopped slot sits in
            amount: Principal in whole units

        Returns:
            Updated ancestor slot

        Raises:
            LookupMissError: If ancestor does not exist
            LedgerInvariantError: If the total would drop below zero
        """
        column = getattr(Location, branch_column(branch_index))
        stmt = (
            update(Location)
            .where(Location.id == ancestor_id)
            .where(column >= amount)
            .values({column: column - amount})
            .returning(Location)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        location = result.scalar_one_or_none()
        if location is not None:
            return location

        if await self.get_by_id(ancestor_id) is None:
            raise LookupMissError(f"Ancestor location {ancestor_id} not found")
        raise LedgerInvariantError(
            f"Branch {branch_index} total of location {ancestor_id} would drop below zero"
        )

    async def add_ancestor_totals(
        self, ancestor_id: int, branch_index: int, amount: int
    ) -> Location:
        """
        Add a new slot's principal to an ancestor branch total.

        Args:
            ancestor_id: Ancestor slot ID
            branch_index: Branch of the ancestor the new slot sits in
            amount: Principal in whole units

        Returns:
            Updated ancestor slot

        Raises:
            LookupMissError: If ancestor does not exist
        """
        column = getattr(Location, branch_column(branch_index))
        stmt = (
            update(Location)
            .where(Location.id == ancestor_id)
            .values({column: column + amount})
            .returning(Location)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        location = result.scalar_one_or_none()
        if location is None:
            raise LookupMissError(f"Ancestor location {ancestor_id} not found")
        return location

    async def raise_last_level(self, location_id: int, level: int) -> None:
        """Raise the retained area tier of a slot, never lowering it."""
        stmt = (
            update(Location)
            .where(Location.id == location_id)
            .where(Location.last_level < level)
            .values(last_level=level)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)
