"""
User state models.

UserInfo holds VIP state, UserBalance holds liquid balances.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.models.base import Base
from placement_rewards.models.types import MicroAmountType


class UserInfo(Base):
    """UserInfo model - VIP tier and team aggregates."""

    __tablename__ = "user_infos"
    __table_args__ = (
        CheckConstraint("vip >= 0 AND vip <= 6", name="check_user_info_vip_range"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    vip: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lock_vip: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    history_recommend: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    team_csd_balance: Mapped[int] = mapped_column(
        MicroAmountType, nullable=False, default=0
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
            f"<UserInfo(user_id={self.user_id}, vip={self.vip}, "
            f"lock_vip={self.lock_vip})>"
        )


class UserBalance(Base):
    """UserBalance model - liquid primary and secondary balances."""

    __tablename__ = "user_balances"
    __table_args__ = (
        CheckConstraint(
            "balance_usdt >= 0", name="check_user_balance_usdt_non_negative"
        ),
        CheckConstraint(
            "balance_dhb >= 0", name="check_user_balance_dhb_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    # Primary currency
    balance_usdt: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    # Secondary currency
    balance_dhb: Mapped[int] = mapped_column(MicroAmountType, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserBalance(user_id={self.user_id}, balance_usdt={self.balance_usdt}, "
            f"balance_dhb={self.balance_dhb})>"
        )
