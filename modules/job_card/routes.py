"""
Job Card Module - API Routes
==============================
Small-scale and large-scale job cards share one set of handlers; each router
is bound to its card type and permission module.

Endpoints (prefix /api/job-cards for SS, /api/large-scale-job-cards for LS):
  GET    /                         - list (filters + pagination)
  POST   /                         - create
  GET    /{id}                     - detail with assays, measurements, invoices
  PUT    /{id}                     - partial update (blocked once valued or paid)
  DELETE /{id}                     - delete (only without assays / invoices)
  POST   /{id}/assays              - record the assay with its measurements
  GET    /{id}/assays              - the job card's assay
  GET    /{id}/assays/{assay_id}   - assay by id
  PUT    /{id}/assays              - replace assay details + measurements
"""

import math
from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from config.database import get_db
from common.unit_of_work import unit_of_work
from modules.auth.deps import require_permission
from modules.job_card.models import CardType
from modules.job_card.service import job_card_service


# ==========================================
# Schemas
# ==========================================

UnitTag = Literal["g", "gram", "grams", "kg", "kilogram", "kilograms", "lb", "lbs", "pound", "pounds"]


class JobCardCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reference_number: str = Field(..., min_length=1, max_length=100)
    received_date: datetime
    exporter_id: int = Field(..., gt=0)
    unit_of_measure: UnitTag = "g"
    notes: Optional[str] = None
    destination_country: Optional[str] = Field(None, max_length=100)
    source_of_gold: Optional[str] = Field("Ghana", max_length=100)
    number_of_boxes: Optional[int] = Field(None, ge=0)

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def normalize_unit(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class JobCardUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reference_number: Optional[str] = Field(None, min_length=1, max_length=100)
    received_date: Optional[datetime] = None
    exporter_id: Optional[int] = Field(None, gt=0)
    unit_of_measure: Optional[UnitTag] = None
    status: Optional[Literal["pending", "in_progress", "rejected"]] = None
    notes: Optional[str] = None
    destination_country: Optional[str] = Field(None, max_length=100)
    source_of_gold: Optional[str] = Field(None, max_length=100)
    number_of_boxes: Optional[int] = Field(None, ge=0)

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def normalize_unit(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class MeasurementIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    piece: Optional[int] = Field(None, ge=1)
    bar_number: Optional[str] = Field(None, max_length=100)
    gross_weight: Optional[float] = Field(None, ge=0)
    gold_assay: Optional[float] = Field(None, ge=0, le=100)
    net_gold_weight: Optional[float] = Field(None, ge=0)
    silver_assay: Optional[float] = Field(None, ge=0, le=100)
    net_silver_weight: Optional[float] = Field(None, ge=0)


class AssayIn(BaseModel):
    """
    Client-sent totals are not accepted; everything is computed from the
    measurements. Omitted prices fall back to the latest daily prices.
    """
    model_config = ConfigDict(extra="forbid")

    method: Literal["X_RAY", "WATER_DENSITY"] = "X_RAY"
    date_of_analysis: Optional[datetime] = None
    signatory: Optional[str] = Field(None, max_length=200)
    comments: Optional[str] = None
    shipment_number: Optional[str] = Field(None, max_length=100)
    sample_type: Optional[str] = Field(None, max_length=50)
    number_of_samples: Optional[int] = Field(None, ge=0)
    number_of_bars: Optional[int] = Field(None, ge=0)
    security_seal_no: Optional[str] = Field(None, max_length=100)
    goldbod_seal_no: Optional[str] = Field(None, max_length=100)
    customs_seal_no: Optional[str] = Field(None, max_length=100)
    commodity_price: Optional[float] = Field(None, gt=0)
    silver_price: Optional[float] = Field(None, ge=0)
    exchange_rate: Optional[float] = Field(None, gt=0)
    price_per_oz: Optional[float] = Field(None, gt=0)
    measurements: List[MeasurementIn] = Field(default_factory=list)


# ==========================================
# Router factory
# ==========================================

def build_router(prefix: str, card_type: str, permission: str, tag: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])
    can_access = require_permission(permission)

    @router.get("")
    async def list_job_cards(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        exporter_id: Optional[int] = Query(None),
        exporter_type: Optional[str] = Query(None),
        reference: Optional[str] = Query(None),
        status: Optional[str] = Query(None),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        items, total = job_card_service.list_job_cards(
            db, card_type, page=page, per_page=limit,
            exporter_id=exporter_id, exporter_type=exporter_type,
            reference=reference, status=status,
            start_date=start_date, end_date=end_date,
        )
        return {
            "job_cards": [jc.to_dict() for jc in items],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    @router.post("", status_code=201)
    async def create_job_card(
        body: JobCardCreate,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.create(db, card_type, body.model_dump())
        return job_card.to_dict()

    @router.get("/{job_card_id}")
    async def get_job_card(
        job_card_id: int,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        return job_card_service.get_or_404(db, job_card_id, card_type).to_dict(detail=True)

    @router.put("/{job_card_id}")
    async def update_job_card(
        job_card_id: int,
        body: JobCardUpdate,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.get_or_404(db, job_card_id, card_type)
            job_card_service.update(db, job_card, body.model_dump(exclude_unset=True))
        return job_card.to_dict()

    @router.delete("/{job_card_id}", status_code=204)
    async def delete_job_card(
        job_card_id: int,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.get_or_404(db, job_card_id, card_type)
            job_card_service.delete(db, job_card)
        return Response(status_code=204)

    # ------------------------------------------
    # Assays
    # ------------------------------------------

    @router.post("/{job_card_id}/assays", status_code=201)
    async def create_assay(
        job_card_id: int,
        body: AssayIn,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.get_or_404(db, job_card_id, card_type)
            assay = job_card_service.create_assay(db, job_card, body.model_dump(exclude_none=True))
        return assay.to_dict()

    @router.get("/{job_card_id}/assays")
    async def get_assay(
        job_card_id: int,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        job_card = job_card_service.get_or_404(db, job_card_id, card_type)
        return job_card_service.get_assay(job_card).to_dict()

    @router.get("/{job_card_id}/assays/{assay_id}")
    async def get_assay_by_id(
        job_card_id: int,
        assay_id: int,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        job_card = job_card_service.get_or_404(db, job_card_id, card_type)
        return job_card_service.get_assay(job_card, assay_id).to_dict()

    @router.put("/{job_card_id}/assays")
    async def replace_assay(
        job_card_id: int,
        body: AssayIn,
        user=Depends(can_access),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.get_or_404(db, job_card_id, card_type)
            assay = job_card_service.replace_assay(db, job_card, body.model_dump(exclude_none=True))
        return assay.to_dict()

    return router


router = build_router("/api/job-cards", CardType.SMALL_SCALE.value, "job-cards", "job-cards")
large_scale_router = build_router(
    "/api/large-scale-job-cards", CardType.LARGE_SCALE.value, "job-cards/large-scale", "large-scale-job-cards",
)
