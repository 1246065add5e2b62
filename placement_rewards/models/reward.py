"""
Reward model.

Append-only ledger of every payout.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.models.base import Base
from placement_rewards.models.types import MicroAmountType


class Reward(Base):
    """Reward model - one payout row, never updated after insert."""

    __tablename__ = "rewards"
    __table_args__ = (
        Index("idx_reward_user_reason", "user_id", "reason"),
        Index("idx_reward_type_record", "type", "type_record_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    amount_b: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    type_record_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    reason: Mapped[str] = mapped_column(String(40), nullable=False)
    reason_location_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    # Commission level, area tier or pool rank depending on reason
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Reward(id={self.id}, user_id={self.user_id}, amount={self.amount}, "
            f"reason={self.reason})>"
        )
