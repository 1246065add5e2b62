"""
Location model.

A placement slot: one capacity-bounded accumulator per user placement cycle.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.models.base import Base
from placement_rewards.models.enums import LocationStatus
from placement_rewards.models.types import MicroAmountType, UnitAmountType


class Location(Base):
    """Location model - capacity-bounded placement slot."""

    __tablename__ = "locations"
    __table_args__ = (
        CheckConstraint("current >= 0", name="check_location_current_non_negative"),
        CheckConstraint(
            "current <= current_max", name="check_location_current_not_exceeds_max"
        ),
        CheckConstraint("usdt > 0", name="check_location_usdt_positive"),
        CheckConstraint(
            "top_num >= 0 AND top_num <= 3", name="check_location_top_num_range"
        ),
        CheckConstraint(
            "total >= 0 AND total_two >= 0 AND total_three >= 0",
            name="check_location_totals_non_negative",
        ),
        CheckConstraint(
            "last_level >= 0 AND last_level <= 5",
            name="check_location_last_level_range",
        ),
        Index("idx_location_user_status", "user_id", "status"),
        Index("idx_location_top", "top"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LocationStatus.RUNNING.value, index=True
    )  # running, stopped

    # Capacity accounting (micro-units)
    usdt: Mapped[int] = mapped_column(MicroAmountType, nullable=False)
    out_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    current_max: Mapped[int] = mapped_column(MicroAmountType, nullable=False)
    current_max_new: Mapped[int] = mapped_column(
        MicroAmountType, nullable=False, default=0
    )
    current_amount_b: Mapped[int] = mapped_column(
        MicroAmountType, nullable=False, default=0
    )

    # Placement tree back-pointer: parent slot and branch index (1..3)
    top: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    top_num: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Branch subtree totals (whole units)
    total: Mapped[int] = mapped_column(UnitAmountType, nullable=False, default=0)
    total_two: Mapped[int] = mapped_column(UnitAmountType, nullable=False, default=0)
    total_three: Mapped[int] = mapped_column(UnitAmountType, nullable=False, default=0)

    last_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    stop_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Location(id={self.id}, user_id={self.user_id}, status={self.status}, "
            f"current={self.current}, current_max={self.current_max})>"
        )

    @property
    def is_running(self) -> bool:
        """Slot still accepts credits."""
        return self.status == LocationStatus.RUNNING.value

    @property
    def branch_totals(self) -> tuple[int, int, int]:
        """The three competing subtree totals."""
        return self.total, self.total_two, self.total_three
