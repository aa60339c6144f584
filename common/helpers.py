"""
GoldBod Assay Office - Shared Helpers
======================================
Pure utility functions with NO database or module dependencies.
"""

from datetime import datetime, date, timezone
from typing import Optional


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def num(value) -> float:
    """Numeric field as float; missing or unparsable values count as zero."""
    if value is None:
        return 0.0
    try:
        return float(value)
    except (ValueError, TypeError):
        return 0.0


def format_money(value, currency: str = "") -> str:
    """Two decimals with thousands separators, optional currency prefix."""
    formatted = "{:,.2f}".format(num(value))
    if not currency:
        return formatted
    symbol = "$" if currency == "USD" else currency
    return f"{symbol} {formatted}"


def format_grams(value) -> str:
    return "{:,.2f}".format(num(value))


def format_ounces(value) -> str:
    return "{:,.4f}".format(num(value))


def format_date(value) -> str:
    """Short display date ('Mar 5, 2025'); '-' when missing."""
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return "-"
    if isinstance(value, (datetime, date)):
        return f"{value.strftime('%b')} {value.day}, {value.year}"
    return str(value)


def get_real_ip(request) -> Optional[str]:
    """Extract real client IP from request (handles X-Forwarded-For proxy header)."""
    x_forwarded = request.headers.get("X-Forwarded-For")
    if x_forwarded:
        return x_forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
