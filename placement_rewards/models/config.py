"""
Reward configuration models.

Config is the key/value store of rates and thresholds; PriceChange
records secondary currency price moves awaiting revaluation.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from placement_rewards.models.base import Base
from placement_rewards.models.enums import PriceChangeStatus


class Config(Base):
    """Config model - one tunable parameter."""

    __tablename__ = "config"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False, default="0")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Config(key={self.key}, value={self.value})>"


class PriceChange(Base):
    """PriceChange model - a secondary currency price move."""

    __tablename__ = "price_changes"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    origin: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[int] = mapped_column(
        Integer, nullable=False, default=PriceChangeStatus.PENDING.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PriceChange(id={self.id}, origin={self.origin}, "
            f"price={self.price}, status={self.status})>"
        )

    @property
    def is_rise(self) -> bool:
        """Price went up."""
        return self.price > self.origin
