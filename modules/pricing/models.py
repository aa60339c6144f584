"""
Pricing Module - Models
========================
DailyPrice: dated spot price / exchange rate entries (the latest row per type wins).
"""

import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, Index
from sqlalchemy.sql import func

from config.database import Base


class PriceType(str, enum.Enum):
    COMMODITY = "COMMODITY"   # gold, USD per troy ounce
    SILVER = "SILVER"         # silver, USD per troy ounce
    EXCHANGE = "EXCHANGE"     # GHS per USD


class DailyPrice(Base):
    __tablename__ = "daily_prices"

    id = Column(Integer, primary_key=True)
    price_type = Column(String(20), nullable=False)
    value = Column(Float, nullable=False)
    source = Column(String(100), nullable=True)
    updated_by = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_daily_price_type_created", "price_type", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "price_type": self.price_type,
            "value": self.value,
            "source": self.source,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<DailyPrice {self.price_type}={self.value}>"
