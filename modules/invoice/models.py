"""
Invoice Module - Models
========================
Invoice: assay-service billing document with a full levy snapshot.
Fee: payment received against an invoice (feeds revenue reports).
"""

import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


def _iso(value):
    return value.isoformat() if value else None


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(40), unique=True, nullable=False, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    currency = Column(String(3), default="GHS", nullable=False)
    status = Column(String(20), default=InvoiceStatus.PENDING.value, nullable=False, index=True)
    issue_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Valuation snapshot
    assay_usd_value = Column(Float, nullable=False)
    assay_ghs_value = Column(Float, nullable=False)
    exchange_rate = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)

    # Levy breakdown (full precision, rounded only for display)
    rate_charge = Column(Float, nullable=False)
    total_inclusive = Column(Float, nullable=False)
    total_exclusive = Column(Float, nullable=False)
    nhil = Column(Float, nullable=False)
    getfund = Column(Float, nullable=False)
    covid = Column(Float, nullable=False)
    sub_total = Column(Float, nullable=False)
    vat = Column(Float, nullable=False)
    grand_total = Column(Float, nullable=False)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job_card = relationship("JobCard", back_populates="invoices")
    fees = relationship("Fee", back_populates="invoice")

    @property
    def amount(self) -> float:
        return self.grand_total

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "job_card_id": self.job_card_id,
            "currency": self.currency,
            "status": self.status,
            "issue_date": _iso(self.issue_date),
            "assay_usd_value": self.assay_usd_value,
            "assay_ghs_value": self.assay_ghs_value,
            "exchange_rate": self.exchange_rate,
            "rate": self.rate,
            "rate_charge": self.rate_charge,
            "total_inclusive": self.total_inclusive,
            "total_exclusive": self.total_exclusive,
            "nhil": self.nhil,
            "getfund": self.getfund,
            "covid": self.covid,
            "sub_total": self.sub_total,
            "vat": self.vat,
            "grand_total": self.grand_total,
            "paid_at": _iso(self.paid_at),
        }

    def __repr__(self):
        return f"<Invoice {self.invoice_number} ({self.status})>"


class Fee(Base):
    __tablename__ = "fees"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount_paid = Column(Float, nullable=False)
    currency = Column(String(3), default="GHS", nullable=False)
    receipt_number = Column(String(100), nullable=True)
    status = Column(String(20), default=InvoiceStatus.PAID.value, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    invoice = relationship("Invoice", back_populates="fees")
    job_card = relationship("JobCard")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "job_card_id": self.job_card_id,
            "amount_paid": self.amount_paid,
            "currency": self.currency,
            "receipt_number": self.receipt_number,
            "status": self.status,
            "payment_date": _iso(self.payment_date),
            "created_at": _iso(self.created_at),
        }
