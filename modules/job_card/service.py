"""
Job Card Service - Business Logic
====================================
Intake records (small-scale and large-scale share one workflow), their assays
and measurements.

Rules:
  - reference numbers are unique
  - a job card is read-only once it has an assay or a paid invoice
  - one assay per job card; measurements can be replaced until an invoice is paid,
    and a pending invoice is re-valued with them
  - every total is computed here from the measurements, never taken from the client
"""

import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, DuplicateError, LockedError, BusinessRuleError
from common.helpers import now_utc
from modules.admin.sequence_service import sequence_service, job_card_prefix, assay_prefix
from modules.exporter.models import Exporter
from modules.invoice.service import invoice_service
from modules.job_card.models import JobCard, Assay, AssayMeasurement, JobCardStatus
from modules.pricing.service import resolve_snapshot
from modules.valuation.calculator import value_measurements, AssayValuation

logger = logging.getLogger("goldbod.jobcard")

_EDITABLE_FIELDS = (
    "reference_number", "received_date", "exporter_id", "unit_of_measure", "status",
    "notes", "destination_country", "source_of_gold", "number_of_boxes",
)

_REQUIRED_FIELDS = ("reference_number", "received_date", "exporter_id", "unit_of_measure", "status")

_ASSAY_FIELDS = (
    "method", "signatory", "comments", "shipment_number", "sample_type",
    "number_of_samples", "number_of_bars",
    "security_seal_no", "goldbod_seal_no", "customs_seal_no",
)


def _day_start(value) -> datetime:
    return value if isinstance(value, datetime) else datetime.combine(value, time.min)


class JobCardService:

    # ------------------------------------------
    # Queries
    # ------------------------------------------

    def list_job_cards(
        self, db: Session,
        card_type: str,
        page: int = 1, per_page: int = 10,
        exporter_id: int = None,
        exporter_type: str = None,
        reference: str = None,
        status: str = None,
        start_date=None,
        end_date=None,
    ) -> Tuple[List[JobCard], int]:
        q = db.query(JobCard).options(joinedload(JobCard.exporter)).filter(JobCard.card_type == card_type)

        if exporter_id:
            q = q.filter(JobCard.exporter_id == exporter_id)
        if exporter_type:
            q = q.join(Exporter, JobCard.exporter_id == Exporter.id).filter(Exporter.exporter_type == exporter_type)
        if reference and reference.strip():
            q = q.filter(JobCard.reference_number.ilike(f"%{reference.strip()}%"))
        if status:
            q = q.filter(JobCard.status == status)
        if start_date:
            q = q.filter(JobCard.created_at >= _day_start(start_date))
        if end_date:
            # inclusive of the whole end day
            q = q.filter(JobCard.created_at < _day_start(end_date) + timedelta(days=1))

        total = q.count()
        items = (
            q.order_by(JobCard.created_at.desc(), JobCard.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total

    def get(self, db: Session, job_card_id: int, card_type: str = None) -> Optional[JobCard]:
        q = (
            db.query(JobCard)
            .options(
                joinedload(JobCard.exporter),
                joinedload(JobCard.assays).joinedload(Assay.measurements),
                joinedload(JobCard.invoices),
            )
            .filter(JobCard.id == job_card_id)
        )
        if card_type:
            q = q.filter(JobCard.card_type == card_type)
        return q.first()

    def get_or_404(self, db: Session, job_card_id: int, card_type: str = None) -> JobCard:
        job_card = self.get(db, job_card_id, card_type)
        if not job_card:
            raise NotFoundError("Job card not found")
        return job_card

    def _check_exporter(self, db: Session, exporter_id: int):
        if not db.query(Exporter.id).filter(Exporter.id == exporter_id).first():
            raise BusinessRuleError("Exporter not found")

    def _check_reference(self, db: Session, reference_number: str, exclude_id: int = None):
        q = db.query(JobCard.id).filter(JobCard.reference_number == reference_number)
        if exclude_id:
            q = q.filter(JobCard.id != exclude_id)
        if q.first():
            raise DuplicateError("A job card with this reference number already exists")

    # ------------------------------------------
    # Create / Update / Delete
    # ------------------------------------------

    def create(self, db: Session, card_type: str, data: dict) -> JobCard:
        reference = data["reference_number"].strip()
        self._check_reference(db, reference)
        self._check_exporter(db, data["exporter_id"])

        job_card = JobCard(
            card_type=card_type,
            human_readable_id=sequence_service.next_number(db, job_card_prefix(card_type)),
            reference_number=reference,
            received_date=data["received_date"],
            exporter_id=data["exporter_id"],
            unit_of_measure=data.get("unit_of_measure") or "g",
            status=JobCardStatus.PENDING.value,
            notes=data.get("notes"),
            destination_country=data.get("destination_country"),
            source_of_gold=data.get("source_of_gold") or "Ghana",
            number_of_boxes=data.get("number_of_boxes"),
        )
        db.add(job_card)
        db.flush()
        logger.info(f"Job card {job_card.human_readable_id} created (ref {reference})")
        return job_card

    def update(self, db: Session, job_card: JobCard, data: dict) -> JobCard:
        """Partial update. `data` holds only the fields the client sent."""
        if job_card.is_locked:
            raise LockedError("Job card cannot be edited once it has an assay or a paid invoice")

        # Required columns cannot be cleared
        data = {k: v for k, v in data.items() if v is not None or k not in _REQUIRED_FIELDS}

        if "reference_number" in data:
            data["reference_number"] = data["reference_number"].strip()
            self._check_reference(db, data["reference_number"], exclude_id=job_card.id)
        if "exporter_id" in data:
            self._check_exporter(db, data["exporter_id"])

        for key in _EDITABLE_FIELDS:
            if key in data:
                setattr(job_card, key, data[key])
        db.flush()
        logger.info(f"Job card {job_card.human_readable_id} updated: {sorted(data)}")
        return job_card

    def delete(self, db: Session, job_card: JobCard):
        if job_card.assays or job_card.invoices:
            raise LockedError("Job cards with assays or invoices cannot be deleted")
        db.delete(job_card)
        db.flush()
        logger.info(f"Job card {job_card.human_readable_id} deleted")

    # ------------------------------------------
    # Assays
    # ------------------------------------------

    def get_assay(self, job_card: JobCard, assay_id: int = None) -> Assay:
        for assay in job_card.assays:
            if assay_id is None or assay.id == assay_id:
                return assay
        raise NotFoundError("Assay not found")

    def _value(self, db: Session, job_card: JobCard, data: dict, fallback: Assay = None) -> Tuple[AssayValuation, object]:
        snapshot = resolve_snapshot(
            db,
            commodity_price=data.get("commodity_price") or (fallback.commodity_price if fallback else None),
            exchange_rate=data.get("exchange_rate") or (fallback.exchange_rate if fallback else None),
            silver_price=data.get("silver_price", fallback.silver_price if fallback else None),
        )
        valuation = value_measurements(
            data.get("measurements") or [],
            commodity_price=snapshot.commodity_price,
            exchange_rate=snapshot.exchange_rate,
            unit=job_card.unit_of_measure,
            silver_price=snapshot.silver_price,
        )
        return valuation, snapshot

    def _fill_assay(self, assay: Assay, data: dict, valuation: AssayValuation, snapshot):
        for key in _ASSAY_FIELDS:
            if key in data:
                setattr(assay, key, data[key])
        assay.date_of_analysis = data.get("date_of_analysis") or assay.date_of_analysis or now_utc()

        assay.commodity_price = snapshot.commodity_price
        assay.silver_price = snapshot.silver_price
        assay.exchange_rate = snapshot.exchange_rate
        assay.price_per_oz = data.get("price_per_oz") or snapshot.commodity_price

        assay.total_net_gold_weight = valuation.gold.net_weight_grams
        assay.total_net_silver_weight = valuation.silver.net_weight_grams
        assay.total_net_gold_weight_oz = valuation.gold.ounces
        assay.total_net_silver_weight_oz = valuation.silver.ounces
        assay.total_gold_value = valuation.gold.usd_value
        assay.total_silver_value = valuation.silver.usd_value
        assay.total_combined_value = valuation.combined_usd
        assay.total_value_ghs = valuation.combined_ghs

        # Stored net weights are the resolved ones (supplied, or derived from fineness)
        for index, (raw, weights) in enumerate(zip(data.get("measurements") or [], valuation.pieces), start=1):
            assay.measurements.append(AssayMeasurement(
                piece=raw.get("piece") or index,
                bar_number=raw.get("bar_number"),
                gross_weight=raw.get("gross_weight"),
                gold_assay=raw.get("gold_assay"),
                net_gold_weight=weights.net_gold_weight,
                silver_assay=raw.get("silver_assay"),
                net_silver_weight=weights.net_silver_weight,
            ))

    def create_assay(self, db: Session, job_card: JobCard, data: dict) -> Assay:
        """Create the job card's assay with all measurements. Run inside a unit of work."""
        if job_card.assays:
            raise BusinessRuleError("Assay already exists for this job card")
        if job_card.status == JobCardStatus.REJECTED.value:
            raise BusinessRuleError("Rejected job cards cannot be assayed")

        valuation, snapshot = self._value(db, job_card, data)

        assay = Assay(
            job_card=job_card,
            human_readable_id=sequence_service.next_number(db, assay_prefix(job_card.card_type)),
        )
        self._fill_assay(assay, data, valuation, snapshot)
        db.add(assay)
        db.flush()

        self.recompute_totals(job_card)
        job_card.status = JobCardStatus.COMPLETED.value
        db.flush()
        logger.info(
            f"Assay {assay.human_readable_id} recorded for {job_card.human_readable_id}: "
            f"{len(assay.measurements)} pieces, USD {assay.total_combined_value:.2f}"
        )
        return assay

    def replace_assay(self, db: Session, job_card: JobCard, data: dict, assay_id: int = None) -> Assay:
        """Replace an assay's details and measurements. Run inside a unit of work."""
        if job_card.has_paid_invoice:
            raise LockedError("Assay cannot be changed after the invoice has been paid")
        assay = self.get_assay(job_card, assay_id)

        valuation, snapshot = self._value(db, job_card, data, fallback=assay)
        assay.measurements.clear()
        db.flush()
        self._fill_assay(assay, data, valuation, snapshot)
        db.flush()

        self.recompute_totals(job_card)
        db.flush()
        # a pending invoice bills the current assay values
        invoice_service.refresh_pending(db, job_card)
        logger.info(f"Assay {assay.human_readable_id} replaced ({len(assay.measurements)} pieces)")
        return assay

    def recompute_totals(self, job_card: JobCard):
        """Job card aggregates = sum of its assays' totals."""
        assays = job_card.assays
        job_card.total_net_gold_weight = sum(a.total_net_gold_weight or 0 for a in assays)
        job_card.total_net_silver_weight = sum(a.total_net_silver_weight or 0 for a in assays)
        job_card.total_net_gold_weight_oz = sum(a.total_net_gold_weight_oz or 0 for a in assays)
        job_card.total_net_silver_weight_oz = sum(a.total_net_silver_weight_oz or 0 for a in assays)
        job_card.total_value_usd = sum(a.total_combined_value or 0 for a in assays)
        job_card.total_value_ghs = sum(a.total_value_ghs or 0 for a in assays)


job_card_service = JobCardService()
