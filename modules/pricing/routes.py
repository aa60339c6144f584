"""
Pricing Module - API Routes
=============================
Endpoints:
  GET  /api/daily-prices          - recent prices (optional ?price_type=)
  GET  /api/daily-prices/latest   - current COMMODITY / SILVER / EXCHANGE values
  POST /api/daily-prices          - record a price (setup)
  GET  /api/daily-prices/{id}     - one recorded price
  PUT  /api/daily-prices/{id}     - correct a recorded price (setup)
  DELETE /api/daily-prices/{id}   - remove a recorded price (setup)
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.unit_of_work import unit_of_work
from modules.auth.deps import require_login, require_permission
from modules.pricing.models import PriceType
from modules.pricing import service as pricing_service

router = APIRouter(prefix="/api/daily-prices", tags=["pricing"])


class DailyPriceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    price_type: Literal["COMMODITY", "SILVER", "EXCHANGE"]
    value: float = Field(..., gt=0)


class DailyPriceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    value: float = Field(..., gt=0)
    recorded_at: Optional[datetime] = None


@router.get("")
async def list_daily_prices(
    price_type: Optional[Literal["COMMODITY", "SILVER", "EXCHANGE"]] = Query(None),
    limit: int = Query(30, ge=1, le=365),
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    prices = pricing_service.list_prices(db, price_type=price_type, limit=limit)
    return {"prices": [p.to_dict() for p in prices]}


@router.get("/latest")
async def latest_daily_prices(
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    return {t.value: pricing_service.latest_price(db, t.value) for t in PriceType}


@router.post("", status_code=201)
async def create_daily_price(
    body: DailyPriceCreate,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        entry = pricing_service.record_price(db, body.price_type, body.value, source="manual", updated_by=user.email)
    return entry.to_dict()


@router.get("/{price_id}")
async def get_daily_price(
    price_id: int,
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    return pricing_service.get_entry_or_404(db, price_id).to_dict()


@router.put("/{price_id}")
async def update_daily_price(
    price_id: int,
    body: DailyPriceUpdate,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        entry = pricing_service.get_entry_or_404(db, price_id)
        pricing_service.update_price(db, entry, body.value, recorded_at=body.recorded_at, updated_by=user.email)
    return entry.to_dict()


@router.delete("/{price_id}")
async def delete_daily_price(
    price_id: int,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        entry = pricing_service.get_entry_or_404(db, price_id)
        pricing_service.delete_price(db, entry)
    return {"message": "Daily price deleted"}
