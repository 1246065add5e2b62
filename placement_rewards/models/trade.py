"""
Trade model.

A settled trade whose fee feeds the referral commission cascade.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.models.base import Base
from placement_rewards.models.enums import TradeStatus
from placement_rewards.models.types import MicroAmountType


class Trade(Base):
    """Trade model."""

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    amount_csd: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    amount_hbs: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TradeStatus.DEFAULT.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Trade(id={self.id}, user_id={self.user_id}, status={self.status})>"
