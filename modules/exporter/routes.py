"""
Exporter Module - API Routes
==============================
Endpoints:
  GET  /api/exporters        - list (optional ?exporter_type=, ?search=)
  GET  /api/exporters/{id}   - detail
  POST /api/exporters        - register a new exporter (setup)
  PUT  /api/exporters/{id}   - update details (setup)
  DELETE /api/exporters/{id} - remove an exporter without job cards (setup)
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.unit_of_work import unit_of_work
from modules.auth.deps import require_login, require_permission
from modules.exporter.service import exporter_service

router = APIRouter(prefix="/api/exporters", tags=["exporters"])


# ==========================================
# Schemas
# ==========================================

class ExporterCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    exporter_type: Literal["small-scale", "large-scale", "gold", "other"] = "other"
    authorized_signatory: Optional[str] = Field(None, max_length=200)
    license_number: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=200)
    telephone: Optional[str] = Field(None, max_length=50)


class ExporterUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    exporter_type: Optional[Literal["small-scale", "large-scale", "gold", "other"]] = None
    authorized_signatory: Optional[str] = Field(None, max_length=200)
    license_number: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=200)
    telephone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


# ==========================================
# Routes
# ==========================================

@router.get("")
async def list_exporters(
    exporter_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    exporters = exporter_service.list_exporters(db, exporter_type=exporter_type, search=search)
    return {"exporters": [e.to_dict() for e in exporters]}


@router.get("/{exporter_id}")
async def get_exporter(
    exporter_id: int,
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    return exporter_service.get_or_404(db, exporter_id).to_dict()


@router.post("", status_code=201)
async def create_exporter(
    body: ExporterCreate,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        exporter = exporter_service.create(db, body.model_dump())
    return exporter.to_dict()


@router.put("/{exporter_id}")
async def update_exporter(
    exporter_id: int,
    body: ExporterUpdate,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        exporter = exporter_service.get_or_404(db, exporter_id)
        exporter_service.update(db, exporter, body.model_dump(exclude_unset=True, exclude_none=True))
    return exporter.to_dict()


@router.delete("/{exporter_id}")
async def delete_exporter(
    exporter_id: int,
    user=Depends(require_permission("setup")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        exporter = exporter_service.get_or_404(db, exporter_id)
        exporter_service.delete(db, exporter)
    return {"message": "Exporter deleted"}
