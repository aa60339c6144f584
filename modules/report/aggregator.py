"""
Report Module - Aggregation
=============================
Pure functions over job cards and fees (ORM rows or any objects with the same
attributes). No database access; the report service loads the records and
these functions shape them for the dashboard, CSV and printable outputs.

Report flags look like "<period>-<mode>":
    period: daily (1 day) | weekly (7 days) | anything else (30 days)
    mode:   summary (grouped per exporter) | comprehensive (one row per record)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from common.helpers import now_utc, as_utc, num
from modules.valuation.units import grams_to_troy_ounces, to_grams

UNKNOWN_EXPORTER = "Unknown"

_PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ReportPeriod:
    name: str
    days: int
    is_summary: bool

    @property
    def is_weekly(self) -> bool:
        return self.days == 7

    @property
    def is_daily(self) -> bool:
        return self.days == 1


def period_days(flag: Optional[str]) -> int:
    """1 for daily, 7 for weekly, 30 for everything else."""
    prefix = (flag or "").strip().lower().split("-", 1)[0]
    return _PERIOD_DAYS.get(prefix, 30)


def parse_report_param(param: Optional[str], default: str = "weekly-summary") -> ReportPeriod:
    name = (param or default).strip().lower() or default
    return ReportPeriod(name=name, days=period_days(name), is_summary="summary" in name)


def since(days: int, now: datetime = None) -> datetime:
    return (now or now_utc()) - timedelta(days=days)


def filter_since(records: Iterable, days: int, now: datetime = None, attr: str = "created_at") -> list:
    """Records whose `attr` timestamp is within the last `days` days."""
    cutoff = since(days, now)
    kept = []
    for record in records:
        stamp = as_utc(getattr(record, attr, None))
        if stamp is not None and stamp >= cutoff:
            kept.append(record)
    return kept


def exporter_name(job_card, missing: str = UNKNOWN_EXPORTER) -> str:
    exporter = getattr(job_card, "exporter", None) if job_card is not None else None
    name = getattr(exporter, "name", None)
    return name if name else missing


# ==========================================
# Shipments (job cards)
# ==========================================

def measured_weights(job_card) -> Dict[str, float]:
    """Net gold / silver grams summed over every assay measurement."""
    unit = getattr(job_card, "unit_of_measure", None) or "g"
    gold = silver = 0.0
    for assay in getattr(job_card, "assays", None) or []:
        for m in getattr(assay, "measurements", None) or []:
            gold += to_grams(num(m.net_gold_weight), unit)
            silver += to_grams(num(m.net_silver_weight), unit)
    return {"gold": gold, "silver": silver}


def shipment_row(job_card, commodity_price: float = 0.0, missing_exporter: str = UNKNOWN_EXPORTER) -> dict:
    """
    One valuation row per job card.
    Stored totals win; without them the grams come from the measurements and
    the value from ounces × the commodity price.
    """
    measured = None
    net_gold = job_card.total_net_gold_weight
    net_silver = job_card.total_net_silver_weight
    if not net_gold:
        measured = measured_weights(job_card)
        net_gold = measured["gold"]
    if not net_silver:
        measured = measured or measured_weights(job_card)
        net_silver = measured["silver"]

    value = job_card.total_value_usd
    if not value:
        value = grams_to_troy_ounces(net_gold) * num(commodity_price)

    return {
        "id": job_card.id,
        "human_readable_id": getattr(job_card, "human_readable_id", None),
        "date": as_utc(job_card.created_at),
        "exporter": exporter_name(job_card, missing_exporter),
        "net_gold_g": num(net_gold),
        "net_silver_g": num(net_silver),
        "estimated_value_usd": num(value),
    }


def shipment_rows(job_cards: Iterable, commodity_price: float = 0.0, missing_exporter: str = UNKNOWN_EXPORTER) -> List[dict]:
    return [shipment_row(jc, commodity_price, missing_exporter) for jc in job_cards]


def summarize_shipments(rows: Iterable[dict]) -> List[dict]:
    """Group shipment rows per exporter, keeping first-seen order."""
    grouped: Dict[str, dict] = {}
    for row in rows:
        bucket = grouped.setdefault(row["exporter"], {
            "exporter": row["exporter"],
            "net_gold_g": 0.0,
            "net_silver_g": 0.0,
            "estimated_value_usd": 0.0,
        })
        bucket["net_gold_g"] += row["net_gold_g"]
        bucket["net_silver_g"] += row["net_silver_g"]
        bucket["estimated_value_usd"] += row["estimated_value_usd"]

    return [
        dict(bucket, id=f"agg-{i}-{name}")
        for i, (name, bucket) in enumerate(grouped.items())
    ]


# ==========================================
# Revenue (fees)
# ==========================================

def fee_date(fee) -> Optional[datetime]:
    return as_utc(getattr(fee, "payment_date", None) or getattr(fee, "created_at", None))


def _share(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def aggregate_by_exporter(fees: Iterable, job_cards: Iterable = ()) -> dict:
    """
    Revenue per exporter.

    Buckets are opened by fees; job cards only add to the counts of exporters
    that already have a bucket. The overall job card total counts every card
    passed in. Average value per card and market share are zero when their
    denominator is zero.
    """
    buckets: Dict[str, dict] = {}
    for fee in fees:
        name = exporter_name(getattr(fee, "job_card", None))
        bucket = buckets.setdefault(name, {
            "exporter": name,
            "revenue": 0.0,
            "job_card_count": 0,
            "assay_count": 0,
            "last_activity": None,
        })
        bucket["revenue"] += num(fee.amount_paid)
        stamp = fee_date(fee)
        if stamp and (bucket["last_activity"] is None or stamp > bucket["last_activity"]):
            bucket["last_activity"] = stamp

    job_cards = list(job_cards)
    for job_card in job_cards:
        bucket = buckets.get(exporter_name(job_card))
        if bucket is None:
            continue
        bucket["job_card_count"] += 1
        bucket["assay_count"] += len(getattr(job_card, "assays", None) or [])

    total_revenue = sum(b["revenue"] for b in buckets.values())
    total_job_cards = len(job_cards)

    stats = []
    for bucket in buckets.values():
        count = bucket["job_card_count"]
        stats.append(dict(
            bucket,
            avg_job_card_value=bucket["revenue"] / count if count else 0.0,
            market_share_percent=_share(bucket["revenue"], total_revenue),
        ))
    stats.sort(key=lambda s: s["revenue"], reverse=True)

    return {
        "exporter_stats": stats,
        "total_revenue": total_revenue,
        "total_job_cards": total_job_cards,
        "avg_revenue_per_job_card": total_revenue / total_job_cards if total_job_cards else 0.0,
    }


def fee_transactions(fees: Iterable) -> List[dict]:
    """Comprehensive mode: one row per fee, newest first."""
    rows = []
    for fee in fees:
        job_card = getattr(fee, "job_card", None)
        card_type = getattr(job_card, "card_type", None)
        rows.append({
            "id": fee.id,
            "date": fee_date(fee),
            "exporter": exporter_name(job_card),
            "job_card_type": "Large Scale" if card_type == "LS" else "Regular",
            "amount": num(fee.amount_paid),
            "receipt_number": fee.receipt_number or "-",
            "status": fee.status,
            "payment_date": as_utc(fee.payment_date),
            "currency": fee.currency,
        })
    rows.sort(key=lambda r: r["date"] or _EPOCH, reverse=True)
    return rows
