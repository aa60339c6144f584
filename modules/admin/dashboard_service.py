"""
Admin Dashboard Service
=========================
Aggregated statistics for the dashboard overview.
"""

from datetime import timedelta, datetime, timezone
from typing import Dict, Any, List

from sqlalchemy.orm import Session
from sqlalchemy import func as sa_func, extract

from modules.job_card.models import JobCard, JobCardStatus
from modules.invoice.models import Invoice, Fee, InvoiceStatus
from modules.exporter.models import Exporter
from modules.user.models import User
from modules.pricing.models import PriceType
from modules.pricing.service import latest_price
from common.helpers import now_utc


class DashboardService:

    def get_overview_stats(self, db: Session) -> Dict[str, Any]:
        """Key business metrics."""
        now = now_utc()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        # Weeks start on Sunday
        week_start = today_start - timedelta(days=(today_start.weekday() + 1) % 7)

        # Job cards
        total_job_cards = db.query(JobCard).count()
        by_status = dict(
            db.query(JobCard.status, sa_func.count(JobCard.id))
            .group_by(JobCard.status)
            .all()
        )
        this_week_job_cards = db.query(JobCard).filter(JobCard.created_at >= week_start).count()

        # Revenue (all recorded fees)
        total_revenue = db.query(sa_func.coalesce(sa_func.sum(Fee.amount_paid), 0)).scalar()

        return {
            # Job cards
            "total_job_cards": total_job_cards,
            "pending_job_cards": by_status.get(JobCardStatus.PENDING.value, 0),
            "active_job_cards": by_status.get(JobCardStatus.IN_PROGRESS.value, 0),
            "completed_job_cards": by_status.get(JobCardStatus.COMPLETED.value, 0),
            "paid_job_cards": by_status.get(JobCardStatus.PAID.value, 0),
            "this_week_job_cards": this_week_job_cards,
            # People
            "total_users": db.query(User).count(),
            "total_exporters": db.query(Exporter).count(),
            # Revenue
            "total_revenue": float(total_revenue or 0),
            # Prices
            "exchange_rate": latest_price(db, PriceType.EXCHANGE.value),
            "gold_price": latest_price(db, PriceType.COMMODITY.value),
            "silver_price": latest_price(db, PriceType.SILVER.value),
        }

    def get_monthly_revenue(self, db: Session, year: int = None) -> List[Dict[str, Any]]:
        """
        Per exporter per month of `year`: paid fees by payment date plus
        pending invoices by issue date.
        """
        year = year or now_utc().year
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)

        paid = (
            db.query(
                Exporter.name.label("exporter"),
                extract("month", Fee.payment_date).label("month"),
                sa_func.sum(Fee.amount_paid).label("amount"),
            )
            .join(JobCard, Fee.job_card_id == JobCard.id)
            .join(Exporter, JobCard.exporter_id == Exporter.id)
            .filter(
                Fee.status == InvoiceStatus.PAID.value,
                Fee.payment_date >= start,
                Fee.payment_date < end,
            )
            .group_by(Exporter.name, extract("month", Fee.payment_date))
            .all()
        )
        pending = (
            db.query(
                Exporter.name.label("exporter"),
                extract("month", Invoice.issue_date).label("month"),
                sa_func.sum(Invoice.grand_total).label("amount"),
            )
            .join(JobCard, Invoice.job_card_id == JobCard.id)
            .join(Exporter, JobCard.exporter_id == Exporter.id)
            .filter(
                Invoice.status == InvoiceStatus.PENDING.value,
                Invoice.issue_date >= start,
                Invoice.issue_date < end,
            )
            .group_by(Exporter.name, extract("month", Invoice.issue_date))
            .all()
        )

        buckets: Dict[tuple, Dict[str, Any]] = {}

        def bucket(exporter, month):
            key = (int(month), exporter)
            if key not in buckets:
                buckets[key] = {
                    "exporter": exporter, "month": int(month),
                    "paid_amount": 0.0, "pending_amount": 0.0, "total_amount": 0.0,
                }
            return buckets[key]

        for r in paid:
            b = bucket(r.exporter, r.month)
            b["paid_amount"] += float(r.amount or 0)
            b["total_amount"] += float(r.amount or 0)
        for r in pending:
            b = bucket(r.exporter, r.month)
            b["pending_amount"] += float(r.amount or 0)
            b["total_amount"] += float(r.amount or 0)

        return [buckets[k] for k in sorted(buckets)]


dashboard_service = DashboardService()
