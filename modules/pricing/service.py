"""
Pricing Module - Shared Service
==================================
Daily spot prices and exchange rates used to value assays.
The most recent row per price type is the current price.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import BusinessRuleError, NotFoundError
from common.helpers import now_utc, as_utc
from modules.pricing.models import DailyPrice, PriceType

logger = logging.getLogger("goldbod.pricing")


@dataclass(frozen=True)
class PricingSnapshot:
    commodity_price: float
    exchange_rate: float
    silver_price: float = 0.0


# ==========================================
# Daily Price Helpers
# ==========================================

def latest_entry(db: Session, price_type: str) -> Optional[DailyPrice]:
    return (
        db.query(DailyPrice)
        .filter(DailyPrice.price_type == price_type)
        .order_by(DailyPrice.created_at.desc(), DailyPrice.id.desc())
        .first()
    )


def latest_price(db: Session, price_type: str) -> Optional[float]:
    """Latest value for a price type, or None when none has been recorded."""
    entry = latest_entry(db, price_type)
    return entry.value if entry else None


def has_price_today(db: Session, price_type: str) -> bool:
    entry = latest_entry(db, price_type)
    if not entry or not entry.created_at:
        return False
    return as_utc(entry.created_at).date() == now_utc().date()


def record_price(db: Session, price_type: str, value: float, source: str = "manual", updated_by: str = None) -> DailyPrice:
    """Add a price row. Caller must commit."""
    if value is None or value <= 0:
        raise BusinessRuleError("Price must be a positive number")
    entry = DailyPrice(
        price_type=price_type,
        value=float(value),
        source=source,
        updated_by=updated_by,
        created_at=now_utc(),
    )
    db.add(entry)
    db.flush()
    logger.info(f"Recorded {price_type} price {value} ({source})")
    return entry


def list_prices(db: Session, price_type: str = None, limit: int = 30) -> List[DailyPrice]:
    q = db.query(DailyPrice)
    if price_type:
        q = q.filter(DailyPrice.price_type == price_type)
    return q.order_by(DailyPrice.created_at.desc(), DailyPrice.id.desc()).limit(limit).all()


def get_entry_or_404(db: Session, price_id: int) -> DailyPrice:
    entry = db.query(DailyPrice).filter(DailyPrice.id == price_id).first()
    if not entry:
        raise NotFoundError("Daily price not found")
    return entry


def update_price(db: Session, entry: DailyPrice, value: float, recorded_at=None, updated_by: str = None) -> DailyPrice:
    """Correct a recorded price. Moving `recorded_at` changes which row is the latest."""
    if value is None or value <= 0:
        raise BusinessRuleError("Price must be a positive number")
    previous = entry.value
    entry.value = float(value)
    if recorded_at is not None:
        entry.created_at = recorded_at
    entry.updated_by = updated_by or entry.updated_by
    db.flush()
    logger.info(f"Corrected {entry.price_type} price #{entry.id}: {previous} -> {entry.value}")
    return entry


def delete_price(db: Session, entry: DailyPrice):
    logger.info(f"Deleted {entry.price_type} price #{entry.id} ({entry.value})")
    db.delete(entry)
    db.flush()


def resolve_snapshot(
    db: Session,
    commodity_price: Optional[float] = None,
    exchange_rate: Optional[float] = None,
    silver_price: Optional[float] = None,
) -> PricingSnapshot:
    """
    Pricing used to value an assay: explicit values win, missing ones fall
    back to the latest daily prices.

    Raises:
        BusinessRuleError when no commodity price or exchange rate is available
    """
    if not commodity_price:
        commodity_price = latest_price(db, PriceType.COMMODITY.value)
    if not exchange_rate:
        exchange_rate = latest_price(db, PriceType.EXCHANGE.value)
    if silver_price is None:
        silver_price = latest_price(db, PriceType.SILVER.value) or 0.0

    if not commodity_price:
        raise BusinessRuleError("Commodity price is missing. Record today's gold price first.")
    if not exchange_rate:
        raise BusinessRuleError("Exchange rate is missing. Record today's exchange rate first.")

    return PricingSnapshot(
        commodity_price=float(commodity_price),
        exchange_rate=float(exchange_rate),
        silver_price=float(silver_price),
    )
