"""
Invoice Module - API Routes
=============================
Endpoints:
  POST /api/job-cards/{id}/invoices               - invoice a valued SS job card
  POST /api/large-scale-job-cards/{id}/invoices   - invoice a valued LS job card
  GET  /api/invoices                              - list (?job_card_id=, ?status=)
  GET  /api/invoices/{id}                         - detail
  POST /api/invoices/{id}/pay                     - record payment (receipting)
  GET  /api/invoices/{id}/print                   - printable HTML invoice
"""

import math
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.templating import render
from common.unit_of_work import unit_of_work
from modules.auth.deps import require_permission
from modules.invoice.service import invoice_service
from modules.job_card.models import CardType
from modules.job_card.service import job_card_service

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

can_view = require_permission("payment-receipting", "reports", "job-cards", "job-cards/large-scale")
can_receipt = require_permission("payment-receipting")


class PaymentIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    receipt_number: Optional[str] = Field(None, max_length=100)
    payment_date: Optional[datetime] = None


# ==========================================
# Job-card scoped creation
# ==========================================

def build_job_card_router(prefix: str, card_type: str, permission: str) -> APIRouter:
    job_card_router = APIRouter(prefix=prefix, tags=["invoices"])

    @job_card_router.post("/{job_card_id}/invoices", status_code=201)
    async def create_invoice(
        job_card_id: int,
        user=Depends(require_permission(permission, "payment-receipting")),
        db: Session = Depends(get_db),
    ):
        with unit_of_work(db):
            job_card = job_card_service.get_or_404(db, job_card_id, card_type)
            invoice = invoice_service.create_for_job_card(db, job_card)
        return invoice.to_dict()

    return job_card_router


small_scale_router = build_job_card_router("/api/job-cards", CardType.SMALL_SCALE.value, "job-cards")
large_scale_router = build_job_card_router(
    "/api/large-scale-job-cards", CardType.LARGE_SCALE.value, "job-cards/large-scale",
)


# ==========================================
# Invoices
# ==========================================

@router.get("")
async def list_invoices(
    job_card_id: Optional[int] = Query(None),
    status: Optional[Literal["pending", "paid"]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user=Depends(can_view),
    db: Session = Depends(get_db),
):
    items, total = invoice_service.list_invoices(db, job_card_id=job_card_id, status=status, page=page, per_page=limit)
    return {
        "invoices": [inv.to_dict() for inv in items],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: int,
    user=Depends(can_view),
    db: Session = Depends(get_db),
):
    return invoice_service.get_or_404(db, invoice_id).to_dict()


@router.post("/{invoice_id}/pay")
async def pay_invoice(
    invoice_id: int,
    body: Optional[PaymentIn] = None,
    user=Depends(can_receipt),
    db: Session = Depends(get_db),
):
    body = body or PaymentIn()
    with unit_of_work(db):
        invoice = invoice_service.get_or_404(db, invoice_id)
        fee = invoice_service.pay(db, invoice, receipt_number=body.receipt_number, payment_date=body.payment_date)
    return {"invoice": invoice.to_dict(), "fee": fee.to_dict()}


@router.get("/{invoice_id}/print", response_class=HTMLResponse)
async def print_invoice(
    invoice_id: int,
    user=Depends(can_view),
    db: Session = Depends(get_db),
):
    invoice = invoice_service.get_or_404(db, invoice_id)
    job_card = invoice.job_card
    html = render(
        "invoices/invoice.html",
        invoice=invoice,
        job_card=job_card,
        exporter=job_card.exporter,
    )
    return HTMLResponse(html)
