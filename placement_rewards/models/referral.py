"""
Referral models.

UserRecommend stores each user's ancestor chain as a materialized path,
UserArea keeps per-user team volume aggregates.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.config.constants import PATH_SEPARATOR
from placement_rewards.models.base import Base
from placement_rewards.models.types import MicroAmountType


class UserRecommend(Base):
    """
    Referral chain of a user.

    ``path`` lists every ancestor id from the root down to the direct
    sponsor, e.g. ``"/1/5/9/"``; a root user has ``"/"``. Descendants of a
    user share the prefix ``path + "<user_id>/"``.
    """

    __tablename__ = "user_recommends"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    path: Mapped[str] = mapped_column(
        String(2048), nullable=False, default=PATH_SEPARATOR, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<UserRecommend(user_id={self.user_id}, path={self.path})>"

    @property
    def ancestor_ids(self) -> list[int]:
        """Ancestor ids ordered root -> direct sponsor."""
        return [int(part) for part in self.path.split(PATH_SEPARATOR) if part]

    @property
    def sponsor_id(self) -> int | None:
        """Direct sponsor id or None for a root user."""
        ancestors = self.ancestor_ids
        return ancestors[-1] if ancestors else None

    @property
    def subtree_prefix(self) -> str:
        """Path prefix shared by every descendant of this user."""
        return f"{self.path}{self.user_id}{PATH_SEPARATOR}"


class UserArea(Base):
    """UserArea model - team volume aggregates and area level."""

    __tablename__ = "user_areas"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_user_area_amount_non_negative"),
        CheckConstraint(
            "self_amount >= 0", name="check_user_area_self_amount_non_negative"
        ),
        CheckConstraint("level >= 0", name="check_user_area_level_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    amount: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    self_amount: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserArea(user_id={self.user_id}, amount={self.amount}, "
            f"self_amount={self.self_amount}, level={self.level})>"
        )

    @property
    def volume(self) -> int:
        """Own placements plus subtree placements."""
        return self.amount + self.self_amount
