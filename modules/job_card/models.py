"""
Job Card Module - Models
=========================
JobCard: per-shipment intake record (small-scale "SS" or large-scale "LS").
Assay: measurement batch with a pricing snapshot and valuation totals.
AssayMeasurement: one physical piece / bar.
"""

import enum

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base


class CardType(str, enum.Enum):
    SMALL_SCALE = "SS"
    LARGE_SCALE = "LS"


class JobCardStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PAID = "paid"
    REJECTED = "rejected"


class AssayMethod(str, enum.Enum):
    X_RAY = "X_RAY"
    WATER_DENSITY = "WATER_DENSITY"


def _iso(value):
    return value.isoformat() if value else None


class JobCard(Base):
    __tablename__ = "job_cards"

    id = Column(Integer, primary_key=True, index=True)
    human_readable_id = Column(String(40), unique=True, nullable=False, index=True)
    reference_number = Column(String(100), unique=True, nullable=False, index=True)
    card_type = Column(String(2), default=CardType.LARGE_SCALE.value, nullable=False, index=True)
    received_date = Column(DateTime(timezone=True), nullable=False)
    exporter_id = Column(Integer, ForeignKey("exporters.id", ondelete="RESTRICT"), nullable=False, index=True)
    unit_of_measure = Column(String(20), default="g", nullable=False)
    status = Column(String(20), default=JobCardStatus.PENDING.value, nullable=False, index=True)

    notes = Column(Text, nullable=True)
    destination_country = Column(String(100), nullable=True)
    source_of_gold = Column(String(100), default="Ghana", nullable=True)
    number_of_boxes = Column(Integer, nullable=True)

    # Aggregates (sum of assays), grams / troy ounces / USD / GHS
    total_net_gold_weight = Column(Float, nullable=True)
    total_net_silver_weight = Column(Float, nullable=True)
    total_net_gold_weight_oz = Column(Float, nullable=True)
    total_net_silver_weight_oz = Column(Float, nullable=True)
    total_value_usd = Column(Float, nullable=True)
    total_value_ghs = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exporter = relationship("Exporter", back_populates="job_cards")
    assays = relationship("Assay", back_populates="job_card", cascade="all, delete-orphan", order_by="Assay.id")
    invoices = relationship("Invoice", back_populates="job_card")

    __table_args__ = (
        Index("ix_job_card_type_created", "card_type", "created_at"),
    )

    @property
    def has_paid_invoice(self) -> bool:
        return any(inv.status == "paid" for inv in self.invoices)

    @property
    def is_locked(self) -> bool:
        """Valued (has an assay) or paid job cards are read-only."""
        return bool(self.assays) or self.has_paid_invoice

    def to_dict(self, detail: bool = False) -> dict:
        data = {
            "id": self.id,
            "human_readable_id": self.human_readable_id,
            "reference_number": self.reference_number,
            "card_type": self.card_type,
            "received_date": _iso(self.received_date),
            "exporter_id": self.exporter_id,
            "exporter": self.exporter.to_dict() if self.exporter else None,
            "unit_of_measure": self.unit_of_measure,
            "status": self.status,
            "notes": self.notes,
            "destination_country": self.destination_country,
            "source_of_gold": self.source_of_gold,
            "number_of_boxes": self.number_of_boxes,
            "total_net_gold_weight": self.total_net_gold_weight,
            "total_net_silver_weight": self.total_net_silver_weight,
            "total_net_gold_weight_oz": self.total_net_gold_weight_oz,
            "total_net_silver_weight_oz": self.total_net_silver_weight_oz,
            "total_value_usd": self.total_value_usd,
            "total_value_ghs": self.total_value_ghs,
            "assay_count": len(self.assays),
            "invoice_count": len(self.invoices),
            "created_at": _iso(self.created_at),
        }
        if detail:
            data["assays"] = [a.to_dict() for a in self.assays]
            data["invoices"] = [inv.to_dict() for inv in self.invoices]
        return data

    def __repr__(self):
        return f"<JobCard {self.human_readable_id} ({self.status})>"


class Assay(Base):
    __tablename__ = "assays"

    id = Column(Integer, primary_key=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    human_readable_id = Column(String(40), unique=True, nullable=False, index=True)
    method = Column(String(20), default=AssayMethod.X_RAY.value, nullable=False)
    date_of_analysis = Column(DateTime(timezone=True), nullable=False)
    signatory = Column(String(200), nullable=True)
    comments = Column(Text, nullable=True)
    shipment_number = Column(String(100), nullable=True)
    sample_type = Column(String(50), nullable=True)
    number_of_samples = Column(Integer, nullable=True)
    number_of_bars = Column(Integer, nullable=True)

    # Seals
    security_seal_no = Column(String(100), nullable=True)
    goldbod_seal_no = Column(String(100), nullable=True)
    customs_seal_no = Column(String(100), nullable=True)

    # Pricing snapshot
    commodity_price = Column(Float, nullable=False)        # gold, USD per troy ounce
    silver_price = Column(Float, default=0, nullable=False)  # USD per troy ounce
    exchange_rate = Column(Float, nullable=False)          # GHS per USD
    price_per_oz = Column(Float, nullable=True)

    # Totals (grams / troy ounces / USD / GHS)
    total_net_gold_weight = Column(Float, default=0, nullable=False)
    total_net_silver_weight = Column(Float, default=0, nullable=False)
    total_net_gold_weight_oz = Column(Float, default=0, nullable=False)
    total_net_silver_weight_oz = Column(Float, default=0, nullable=False)
    total_gold_value = Column(Float, default=0, nullable=False)
    total_silver_value = Column(Float, default=0, nullable=False)
    total_combined_value = Column(Float, default=0, nullable=False)
    total_value_ghs = Column(Float, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job_card = relationship("JobCard", back_populates="assays")
    measurements = relationship(
        "AssayMeasurement", back_populates="assay",
        cascade="all, delete-orphan", order_by="AssayMeasurement.piece",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_card_id": self.job_card_id,
            "human_readable_id": self.human_readable_id,
            "method": self.method,
            "date_of_analysis": _iso(self.date_of_analysis),
            "signatory": self.signatory,
            "comments": self.comments,
            "shipment_number": self.shipment_number,
            "sample_type": self.sample_type,
            "number_of_samples": self.number_of_samples,
            "number_of_bars": self.number_of_bars,
            "security_seal_no": self.security_seal_no,
            "goldbod_seal_no": self.goldbod_seal_no,
            "customs_seal_no": self.customs_seal_no,
            "commodity_price": self.commodity_price,
            "silver_price": self.silver_price,
            "exchange_rate": self.exchange_rate,
            "price_per_oz": self.price_per_oz,
            "total_net_gold_weight": self.total_net_gold_weight,
            "total_net_silver_weight": self.total_net_silver_weight,
            "total_net_gold_weight_oz": self.total_net_gold_weight_oz,
            "total_net_silver_weight_oz": self.total_net_silver_weight_oz,
            "total_gold_value": self.total_gold_value,
            "total_silver_value": self.total_silver_value,
            "total_combined_value": self.total_combined_value,
            "total_value_ghs": self.total_value_ghs,
            "measurements": [m.to_dict() for m in self.measurements],
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Assay {self.human_readable_id}>"


class AssayMeasurement(Base):
    __tablename__ = "assay_measurements"

    id = Column(Integer, primary_key=True)
    assay_id = Column(Integer, ForeignKey("assays.id", ondelete="CASCADE"), nullable=False, index=True)
    piece = Column(Integer, nullable=False)
    bar_number = Column(String(100), nullable=True)
    gross_weight = Column(Float, nullable=True)
    gold_assay = Column(Float, nullable=True)        # fineness, percent
    net_gold_weight = Column(Float, nullable=True)
    silver_assay = Column(Float, nullable=True)
    net_silver_weight = Column(Float, nullable=True)

    assay = relationship("Assay", back_populates="measurements")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "piece": self.piece,
            "bar_number": self.bar_number,
            "gross_weight": self.gross_weight,
            "gold_assay": self.gold_assay,
            "net_gold_weight": self.net_gold_weight,
            "silver_assay": self.silver_assay,
            "net_silver_weight": self.net_silver_weight,
        }
