"""
Report Service - Data Loading & Report Assembly
=================================================
Loads job cards, assays and fees for a reporting window (capped at
REPORT_ROW_LIMIT / FEE_ROW_LIMIT rows) and hands them to the aggregator.

Printable report types:
    monthly-shipment-all-exporters    last 30 days, every exporter
    monthly-shipment-gold-exporters   last 30 days, gold exporters only
    weekly-shipment-exporter          one exporter, week from week_start
    monthly-analysis-exporter         sample analysis, one exporter, week from week_start
    monthly-analysis-all-exporters    sample analysis, every exporter, week from week_start
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from common.exceptions import BusinessRuleError
from common.helpers import now_utc, format_date, format_money
from common.templating import render
from config.settings import REPORT_ROW_LIMIT, FEE_ROW_LIMIT
from modules.exporter.models import Exporter, ExporterType
from modules.invoice.models import Fee
from modules.job_card.models import JobCard, Assay
from modules.pricing.models import PriceType
from modules.pricing.service import latest_price
from modules.report import aggregator
from modules.report.export import to_csv, to_xlsx, date_cell
from modules.valuation.units import to_grams

logger = logging.getLogger("goldbod.report")

SHIPMENT_HEADERS = ["Exporter", "NetGold_g", "NetSilver_g", "EstimatedValue_USD"]
REVENUE_HEADERS = [
    "Exporter", "Total_Revenue_USD", "Job_Cards", "Assays",
    "Avg_Value_Per_Card", "Market_Share_Percent", "Last_Activity",
]

REPORT_TYPES = (
    "monthly-shipment-all-exporters",
    "monthly-shipment-gold-exporters",
    "weekly-shipment-exporter",
    "monthly-analysis-exporter",
    "monthly-analysis-all-exporters",
)


@dataclass
class PrintableReport:
    title: str
    period_start: datetime
    period_end: datetime
    columns: List[str]
    rows: List[list] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return "_".join(self.title.split()) + ".html"


def _week_bounds(week_start: date):
    start = datetime.combine(week_start, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=7)


class ReportService:

    # ------------------------------------------
    # Loading
    # ------------------------------------------

    def load_job_cards(
        self, db: Session,
        start: datetime,
        end: datetime = None,
        exporter_id: int = None,
        exporter_type: str = None,
        limit: int = REPORT_ROW_LIMIT,
    ) -> List[JobCard]:
        """Newest first. The row cap applies to job cards, not to joined rows."""
        q = db.query(JobCard.id).filter(JobCard.created_at >= start)
        if end:
            q = q.filter(JobCard.created_at < end)
        if exporter_id:
            q = q.filter(JobCard.exporter_id == exporter_id)
        if exporter_type:
            q = q.join(Exporter, JobCard.exporter_id == Exporter.id).filter(Exporter.exporter_type == exporter_type)

        ids = [row.id for row in q.order_by(JobCard.created_at.desc(), JobCard.id.desc()).limit(limit).all()]
        if not ids:
            return []
        return (
            db.query(JobCard)
            .options(
                joinedload(JobCard.exporter),
                joinedload(JobCard.assays).joinedload(Assay.measurements),
            )
            .filter(JobCard.id.in_(ids))
            .order_by(JobCard.created_at.desc(), JobCard.id.desc())
            .all()
        )

    def load_fees(self, db: Session, start: datetime, limit: int = FEE_ROW_LIMIT) -> List[Fee]:
        return (
            db.query(Fee)
            .options(joinedload(Fee.job_card).joinedload(JobCard.exporter))
            .filter(Fee.created_at >= start)
            .order_by(Fee.created_at.desc(), Fee.id.desc())
            .limit(limit)
            .all()
        )

    def load_assays(
        self, db: Session,
        start: datetime, end: datetime,
        exporter_id: int = None,
        limit: int = REPORT_ROW_LIMIT,
    ) -> List[Assay]:
        """Newest first. The row cap applies to assays, not to joined measurements."""
        q = db.query(Assay.id)
        if exporter_id:
            # per-exporter analysis follows the job card's intake week
            q = q.join(JobCard, Assay.job_card_id == JobCard.id).filter(
                JobCard.exporter_id == exporter_id,
                JobCard.created_at >= start,
                JobCard.created_at < end,
            )
        else:
            q = q.filter(Assay.created_at >= start, Assay.created_at < end)
        ids = [row.id for row in q.order_by(Assay.created_at.desc(), Assay.id.desc()).limit(limit).all()]
        if not ids:
            return []
        return (
            db.query(Assay)
            .options(
                joinedload(Assay.measurements),
                joinedload(Assay.job_card).joinedload(JobCard.exporter),
            )
            .filter(Assay.id.in_(ids))
            .order_by(Assay.created_at.desc(), Assay.id.desc())
            .all()
        )

    # ------------------------------------------
    # Shipments (job card valuation)
    # ------------------------------------------

    def shipment_report(self, db: Session, report_param: str = None) -> dict:
        period = aggregator.parse_report_param(report_param, "weekly-summary")
        until = now_utc()
        since_date = aggregator.since(period.days, until)
        commodity_price = latest_price(db, PriceType.COMMODITY.value) or 0.0

        job_cards = self.load_job_cards(db, since_date)
        rows = aggregator.shipment_rows(job_cards, commodity_price, missing_exporter="-")
        if period.is_summary:
            rows = aggregator.summarize_shipments(rows)

        logger.info(f"Shipment report {period.name}: {len(job_cards)} job cards, {len(rows)} rows")
        return {
            "report": period.name,
            "rows": rows,
            "is_summary": period.is_summary,
            "is_weekly": period.is_weekly,
            "period_days": period.days,
            "until": until,
            "since_date": since_date,
            "commodity_price": commodity_price,
        }

    def shipment_table(self, report: dict):
        headers = list(SHIPMENT_HEADERS)
        if not report["is_summary"]:
            headers.insert(0, "Date")
        table = []
        for r in report["rows"]:
            cells = [r["exporter"], r["net_gold_g"], r["net_silver_g"], r["estimated_value_usd"]]
            if not report["is_summary"]:
                cells.insert(0, r["date"])
            table.append(cells)
        return headers, table

    # ------------------------------------------
    # Revenue (fees)
    # ------------------------------------------

    def revenue_report(self, db: Session, fees_param: str = None) -> dict:
        period = aggregator.parse_report_param(fees_param, "daily-summary")
        since_date = aggregator.since(period.days)

        fees = self.load_fees(db, since_date)
        job_cards = self.load_job_cards(db, since_date)
        result = aggregator.aggregate_by_exporter(fees, job_cards)
        result.update({
            "report": period.name,
            "period_days": period.days,
            "since_date": since_date,
            "is_summary": period.is_summary,
        })
        if not period.is_summary:
            result["transaction_details"] = aggregator.fee_transactions(fees)
        return result

    def revenue_table(self, report: dict):
        table = [
            [
                s["exporter"],
                s["revenue"],
                s["job_card_count"],
                s["assay_count"],
                s["avg_job_card_value"],
                s["market_share_percent"],
                date_cell(s["last_activity"]),
            ]
            for s in report["exporter_stats"]
        ]
        return list(REVENUE_HEADERS), table

    def export(self, headers, table, fmt: str = "csv", title: str = "Report"):
        """(content, media type, extension) for a header row and table rows."""
        if fmt == "xlsx":
            return (
                to_xlsx(headers, table, title=title),
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                "xlsx",
            )
        return to_csv(headers, table), "text/csv; charset=utf-8", "csv"

    # ------------------------------------------
    # Printable reports
    # ------------------------------------------

    def printable_report(
        self, db: Session,
        report_type: str,
        exporter_id: Optional[int] = None,
        week_start: Optional[date] = None,
    ) -> PrintableReport:
        if report_type not in REPORT_TYPES:
            raise BusinessRuleError("Invalid report type")
        if report_type in ("weekly-shipment-exporter", "monthly-analysis-exporter"):
            if not exporter_id or not week_start:
                raise BusinessRuleError("Exporter ID and week start required")
        if report_type == "monthly-analysis-all-exporters" and not week_start:
            raise BusinessRuleError("Week start required")

        commodity_price = latest_price(db, PriceType.COMMODITY.value) or 0.0

        if report_type == "monthly-shipment-all-exporters":
            end = now_utc()
            start = aggregator.since(30, end)
            report = PrintableReport(
                "Monthly Shipment Reports for All Exporters", start, end,
                ["Exporter", "Job Card ID", "Date", "Net Gold (g)", "Net Silver (g)", "Estimated Value (USD)"],
            )
            for r in aggregator.shipment_rows(self.load_job_cards(db, start), commodity_price):
                report.rows.append([
                    r["exporter"], r["human_readable_id"], format_date(r["date"]),
                    f"{r['net_gold_g']:.2f}", f"{r['net_silver_g']:.2f}", format_money(r["estimated_value_usd"], "USD"),
                ])

        elif report_type == "monthly-shipment-gold-exporters":
            end = now_utc()
            start = aggregator.since(30, end)
            report = PrintableReport(
                "Monthly Shipment Report for Gold Exporters", start, end,
                ["Exporter", "Job Card ID", "Date", "Net Gold (g)", "Estimated Value (USD)"],
            )
            job_cards = self.load_job_cards(db, start, exporter_type=ExporterType.GOLD.value)
            for r in aggregator.shipment_rows(job_cards, commodity_price):
                report.rows.append([
                    r["exporter"], r["human_readable_id"], format_date(r["date"]),
                    f"{r['net_gold_g']:.2f}", format_money(r["estimated_value_usd"], "USD"),
                ])

        elif report_type == "weekly-shipment-exporter":
            start, end = _week_bounds(week_start)
            report = PrintableReport(
                f"Weekly Shipment Report for Exporter - Week of {week_start.isoformat()}", start, end,
                ["Job Card ID", "Date", "Net Gold (g)", "Net Silver (g)", "Estimated Value (USD)"],
            )
            job_cards = self.load_job_cards(db, start, end, exporter_id=exporter_id)
            for r in aggregator.shipment_rows(job_cards, commodity_price):
                report.rows.append([
                    r["human_readable_id"], format_date(r["date"]),
                    f"{r['net_gold_g']:.2f}", f"{r['net_silver_g']:.2f}", format_money(r["estimated_value_usd"], "USD"),
                ])

        else:
            per_exporter = report_type == "monthly-analysis-exporter"
            start, end = _week_bounds(week_start)
            subject = "Exporter" if per_exporter else "All Exporters"
            columns = ["Job Card ID", "Sample ID", "Piece Number", "Fineness", "Net Weight (g)", "Analysis Date"]
            if not per_exporter:
                columns.insert(0, "Exporter")
            report = PrintableReport(
                f"Monthly Sample Analysis Report for {subject} - Week of {week_start.isoformat()}",
                start, end, columns,
            )
            assays = self.load_assays(db, start, end, exporter_id=exporter_id if per_exporter else None)
            for assay in assays:
                job_card = assay.job_card
                unit = job_card.unit_of_measure if job_card else None
                for m in assay.measurements:
                    row = [
                        job_card.human_readable_id if job_card else aggregator.UNKNOWN_EXPORTER,
                        assay.human_readable_id,
                        m.piece,
                        f"{m.gold_assay:.2f}" if m.gold_assay is not None else "-",
                        f"{to_grams(m.net_gold_weight, unit):.2f}" if m.net_gold_weight is not None else "-",
                        format_date(assay.date_of_analysis),
                    ]
                    if not per_exporter:
                        row.insert(0, aggregator.exporter_name(job_card))
                    report.rows.append(row)

        logger.info(f"Printable report '{report.title}' with {len(report.rows)} rows")
        return report

    def render_printable(self, report: PrintableReport) -> str:
        return render("reports/report.html", report=report)


report_service = ReportService()
