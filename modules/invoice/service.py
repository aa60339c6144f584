"""
Invoice Service - Business Logic
===================================
Assay-service invoices for valued job cards and their payment.

Invoice values come from the job card's assays:
    assay USD value = Σ assay combined USD (or GHS / rate when USD is missing)
    assay GHS value = Σ assay GHS value
    exchange rate   = first assay with a rate
and the charges from modules.valuation.levy.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, BusinessRuleError
from common.helpers import now_utc
from config.settings import INVOICE_RATE_PERCENT
from modules.admin.sequence_service import sequence_service, invoice_prefix
from modules.invoice.models import Invoice, Fee, InvoiceStatus
from modules.job_card.models import JobCard, JobCardStatus
from modules.valuation.levy import calculate_invoice_totals

logger = logging.getLogger("goldbod.invoice")


def assay_values(job_card: JobCard) -> Tuple[float, float, float]:
    """(usd, ghs, exchange_rate) summed over the job card's assays."""
    usd = ghs = rate = 0.0
    for assay in job_card.assays:
        if assay.total_combined_value:
            usd += assay.total_combined_value
        elif assay.total_value_ghs and assay.exchange_rate:
            usd += assay.total_value_ghs / assay.exchange_rate
        if assay.total_value_ghs:
            ghs += assay.total_value_ghs
        if assay.exchange_rate and not rate:
            rate = assay.exchange_rate
    return usd, ghs, rate


class InvoiceService:

    def create_for_job_card(self, db: Session, job_card: JobCard, rate: float = INVOICE_RATE_PERCENT) -> Invoice:
        if job_card.invoices:
            raise BusinessRuleError("An invoice already exists for this job card")
        if not job_card.assays:
            raise BusinessRuleError("No assays found for this job card")

        usd, ghs, exchange_rate = assay_values(job_card)
        if not exchange_rate:
            raise BusinessRuleError(
                "Invoice cannot be generated due to missing exchange rate from assay. "
                "Please ensure the assay has a valid exchange rate before generating an invoice."
            )

        totals = calculate_invoice_totals(ghs, rate)
        invoice = Invoice(
            invoice_number=sequence_service.next_number(db, invoice_prefix(job_card.card_type)),
            job_card=job_card,
            currency="GHS",
            status=InvoiceStatus.PENDING.value,
            issue_date=now_utc(),
            assay_usd_value=usd,
            assay_ghs_value=ghs,
            exchange_rate=exchange_rate,
            **totals,
        )
        db.add(invoice)
        db.flush()
        logger.info(
            f"Invoice {invoice.invoice_number} issued for {job_card.human_readable_id}: "
            f"GHS {invoice.grand_total:.2f}"
        )
        return invoice

    def refresh_pending(self, db: Session, job_card: JobCard) -> List[Invoice]:
        """
        Re-derive the values of the job card's pending invoices from its current
        assays. Paid invoices are never touched. Run inside a unit of work.
        """
        pending = [inv for inv in job_card.invoices if inv.status == InvoiceStatus.PENDING.value]
        if not pending:
            return []

        usd, ghs, exchange_rate = assay_values(job_card)
        if not exchange_rate:
            raise BusinessRuleError("Invoice cannot be updated due to missing exchange rate from assay.")

        for invoice in pending:
            totals = calculate_invoice_totals(ghs, invoice.rate)
            invoice.assay_usd_value = usd
            invoice.assay_ghs_value = ghs
            invoice.exchange_rate = exchange_rate
            for key, value in totals.items():
                setattr(invoice, key, value)
            logger.info(f"Invoice {invoice.invoice_number} re-valued: GHS {invoice.grand_total:.2f}")
        db.flush()
        return pending

    def list_invoices(
        self, db: Session,
        job_card_id: int = None,
        status: str = None,
        page: int = 1, per_page: int = 20,
    ) -> Tuple[List[Invoice], int]:
        q = db.query(Invoice)
        if job_card_id:
            q = q.filter(Invoice.job_card_id == job_card_id)
        if status:
            q = q.filter(Invoice.status == status)
        total = q.count()
        items = (
            q.order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total

    def get(self, db: Session, invoice_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .options(joinedload(Invoice.job_card).joinedload(JobCard.exporter))
            .filter(Invoice.id == invoice_id)
            .first()
        )

    def get_or_404(self, db: Session, invoice_id: int) -> Invoice:
        invoice = self.get(db, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def pay(self, db: Session, invoice: Invoice, receipt_number: str = None, payment_date=None) -> Fee:
        """Mark paid, record the fee and close the job card. Run inside a unit of work."""
        locked = db.query(Invoice).filter(Invoice.id == invoice.id).with_for_update().first()
        if locked.status == InvoiceStatus.PAID.value:
            raise BusinessRuleError("Invoice has already been paid")

        paid_at = payment_date or now_utc()
        locked.status = InvoiceStatus.PAID.value
        locked.paid_at = paid_at

        fee = Fee(
            invoice_id=locked.id,
            job_card_id=locked.job_card_id,
            amount_paid=locked.grand_total,
            currency=locked.currency,
            receipt_number=receipt_number,
            status=InvoiceStatus.PAID.value,
            payment_date=paid_at,
            created_at=now_utc(),
        )
        db.add(fee)
        locked.job_card.status = JobCardStatus.PAID.value
        db.flush()
        logger.info(f"Invoice {locked.invoice_number} paid (receipt {receipt_number or '-'})")
        return fee


invoice_service = InvoiceService()
