"""
Exporter Service - Business Logic
====================================
Registry of exporters referenced by job cards.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, DuplicateError, BusinessRuleError
from modules.exporter.models import Exporter

logger = logging.getLogger("goldbod.exporter")


class ExporterService:

    def list_exporters(
        self, db: Session,
        exporter_type: str = None,
        active_only: bool = False,
        search: str = None,
    ) -> List[Exporter]:
        q = db.query(Exporter)
        if exporter_type:
            q = q.filter(Exporter.exporter_type == exporter_type)
        if active_only:
            q = q.filter(Exporter.is_active == True)
        if search and search.strip():
            term = f"%{search.strip()}%"
            q = q.filter(Exporter.name.ilike(term) | Exporter.code.ilike(term))
        return q.order_by(Exporter.name).all()

    def get(self, db: Session, exporter_id: int) -> Optional[Exporter]:
        return db.query(Exporter).filter(Exporter.id == exporter_id).first()

    def get_or_404(self, db: Session, exporter_id: int) -> Exporter:
        exporter = self.get(db, exporter_id)
        if not exporter:
            raise NotFoundError("Exporter not found")
        return exporter

    def create(self, db: Session, data: dict) -> Exporter:
        code = data["code"].strip().upper()
        if db.query(Exporter).filter(Exporter.code == code).first():
            raise DuplicateError(f"Exporter code {code} already exists")

        exporter = Exporter(
            name=data["name"].strip(),
            code=code,
            exporter_type=data.get("exporter_type") or "other",
            authorized_signatory=data.get("authorized_signatory"),
            license_number=data.get("license_number"),
            email=data.get("email"),
            telephone=data.get("telephone"),
        )
        db.add(exporter)
        db.flush()
        logger.info(f"Exporter created: {exporter.code} ({exporter.exporter_type})")
        return exporter

    def update(self, db: Session, exporter: Exporter, data: dict) -> Exporter:
        """Apply the supplied fields. A changed code must stay unique."""
        if data.get("code"):
            code = data["code"].strip().upper()
            clash = db.query(Exporter).filter(Exporter.code == code, Exporter.id != exporter.id).first()
            if clash:
                raise DuplicateError(f"Exporter code {code} already exists")
            data["code"] = code
        if data.get("name"):
            data["name"] = data["name"].strip()

        for key, value in data.items():
            setattr(exporter, key, value)
        db.flush()
        logger.info(f"Exporter updated: {exporter.code} ({', '.join(sorted(data))})")
        return exporter

    def delete(self, db: Session, exporter: Exporter):
        if exporter.job_cards:
            raise BusinessRuleError("Cannot delete exporter with associated job cards")
        logger.info(f"Exporter deleted: {exporter.code}")
        db.delete(exporter)
        db.flush()


exporter_service = ExporterService()
