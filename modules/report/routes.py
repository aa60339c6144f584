"""
Report Module - API Routes
============================
Endpoints:
  GET  /api/reports                 - shipment CSV (?report=weekly-summary|monthly-comprehensive|...)
                                      or revenue CSV (?feesReport=daily-summary|...); ?format=xlsx for Excel
  POST /api/reports/generate-pdf    - printable A4 landscape HTML report
  GET  /api/reports/types           - printable report types
  GET  /api/dashboard/exporters     - shipment valuation rows (JSON)
  GET  /api/dashboard/fees          - revenue per exporter (JSON)
  GET  /api/dashboard/stats         - overview counters, prices and monthly revenue
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.admin.dashboard_service import dashboard_service
from modules.auth.deps import require_permission
from modules.report.export import file_stamp
from modules.report.service import report_service, REPORT_TYPES

router = APIRouter(tags=["reports"])

can_report = require_permission("reports")
can_view_dashboard = require_permission("dashboard", "reports")


# ==========================================
# Schemas
# ==========================================

class GenerateReportIn(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    report_type: str = Field(..., min_length=1, alias="reportType")
    exporter_id: Optional[int] = Field(None, gt=0, alias="exporterId")
    week_start: Optional[date] = Field(None, alias="weekStart")


def _download(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ==========================================
# Downloads
# ==========================================

@router.get("/api/reports")
async def download_report(
    report: Optional[str] = Query(None),
    fees_report: Optional[str] = Query(None, alias="feesReport"),
    fmt: Literal["csv", "xlsx"] = Query("csv", alias="format"),
    user=Depends(can_report),
    db: Session = Depends(get_db),
):
    if fees_report:
        data = report_service.revenue_report(db, fees_report)
        headers, table = report_service.revenue_table(data)
        name = f"revenue-{data['report']}"
    else:
        data = report_service.shipment_report(db, report)
        headers, table = report_service.shipment_table(data)
        name = f"report-{data['report']}"

    content, media_type, ext = report_service.export(headers, table, fmt, title=name)
    return _download(content, media_type, f"{name}-{file_stamp()}.{ext}")


@router.post("/api/reports/generate-pdf", response_class=HTMLResponse)
async def generate_printable_report(
    body: GenerateReportIn,
    user=Depends(can_report),
    db: Session = Depends(get_db),
):
    report = report_service.printable_report(
        db, body.report_type, exporter_id=body.exporter_id, week_start=body.week_start,
    )
    return HTMLResponse(
        report_service.render_printable(report),
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )


@router.get("/api/reports/types")
async def list_report_types(user=Depends(can_report)):
    return {"report_types": list(REPORT_TYPES)}


# ==========================================
# Dashboard
# ==========================================

@router.get("/api/dashboard/exporters")
async def dashboard_exporters(
    report: Optional[str] = Query(None),
    user=Depends(can_view_dashboard),
    db: Session = Depends(get_db),
):
    return report_service.shipment_report(db, report)


@router.get("/api/dashboard/fees")
async def dashboard_fees(
    fees_report: Optional[str] = Query(None, alias="feesReport"),
    user=Depends(can_view_dashboard),
    db: Session = Depends(get_db),
):
    return report_service.revenue_report(db, fees_report)


@router.get("/api/dashboard/stats")
async def dashboard_stats(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user=Depends(require_permission("dashboard")),
    db: Session = Depends(get_db),
):
    stats = dashboard_service.get_overview_stats(db)
    stats["monthly_revenue"] = dashboard_service.get_monthly_revenue(db, year)
    return stats
