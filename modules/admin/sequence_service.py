"""
Admin Module - Document Numbering
===================================
Human-readable IDs for job cards, assays and invoices:

    SS-2025-01         LS-2025-07
    SS-ASSY-2025-01    LS-ASSY-2025-03
    SS-INV-2025-01     LS-INV-2025-02

Counters live in document_sequences, one row per (prefix, year), and are
row-locked while incremented. Numbers are issued inside the caller's
transaction, so a rolled-back write also gives its number back. The first
row of a (prefix, year) is inserted in a savepoint; when a concurrent request
wins that insert, the existing row is locked and used instead.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from common.helpers import now_utc
from modules.admin.models import DocumentSequence

logger = logging.getLogger("goldbod.admin")


class SequenceService:

    def _locked(self, db: Session, prefix: str, year: int) -> Optional[DocumentSequence]:
        return (
            db.query(DocumentSequence)
            .filter(
                DocumentSequence.prefix == prefix,
                DocumentSequence.year == year,
            )
            .with_for_update()
            .first()
        )

    def _create(self, db: Session, prefix: str, year: int) -> DocumentSequence:
        try:
            with db.begin_nested():
                seq = DocumentSequence(prefix=prefix, year=year, last_value=0)
                db.add(seq)
            return seq
        except IntegrityError:
            # Race condition: another request created the counter first
            logger.info(f"Sequence {prefix}-{year} created concurrently, reusing it")
            seq = self._locked(db, prefix, year)
            if seq is None:
                raise
            return seq

    def next_value(self, db: Session, prefix: str, year: int) -> int:
        seq = self._locked(db, prefix, year) or self._create(db, prefix, year)
        seq.last_value = (seq.last_value or 0) + 1
        db.flush()
        return seq.last_value

    def next_number(self, db: Session, prefix: str, year: Optional[int] = None) -> str:
        """e.g. next_number(db, "LS-INV") → "LS-INV-2025-04"."""
        year = year or now_utc().year
        return format_number(prefix, year, self.next_value(db, prefix, year))


def format_number(prefix: str, year: int, value: int) -> str:
    return f"{prefix}-{year}-{value:02d}"


def job_card_prefix(card_type: str) -> str:
    return card_type


def assay_prefix(card_type: str) -> str:
    return f"{card_type}-ASSY"


def invoice_prefix(card_type: str) -> str:
    return f"{card_type}-INV"


sequence_service = SequenceService()
