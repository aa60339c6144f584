"""
Valuation Module - Levy / Tax Calculator
=========================================
Invoice charges on an assay GHS value.

Order (sequential compounding):
    total_inclusive = assay_ghs_value × rate / 100      (regulator service charge)
    total_exclusive = total_inclusive / inclusive_factor
    nhil    = total_exclusive × 2.5%
    getfund = total_exclusive × 2.5%
    covid   = total_exclusive × 1%
    sub_total = total_exclusive + nhil + getfund + covid
    vat     = sub_total × 15%
    grand_total = sub_total + vat

inclusive_factor = (1 + nhil + getfund + covid) × (1 + vat) = 1.219, so the
grand total equals the inclusive service charge. Nothing is rounded here;
rounding to 2 decimals happens only at display time.
"""

from typing import Dict

from config.settings import INVOICE_RATE_PERCENT, NHIL_RATE, GETFUND_RATE, COVID_RATE, VAT_RATE
from common.helpers import num


def inclusive_factor(
    nhil_rate: float = NHIL_RATE,
    getfund_rate: float = GETFUND_RATE,
    covid_rate: float = COVID_RATE,
    vat_rate: float = VAT_RATE,
) -> float:
    return (1 + nhil_rate + getfund_rate + covid_rate) * (1 + vat_rate)


def apply_levies(total_exclusive) -> Dict[str, float]:
    """Levy chain on a tax-exclusive base."""
    base = num(total_exclusive)
    nhil = base * NHIL_RATE
    getfund = base * GETFUND_RATE
    covid = base * COVID_RATE
    sub_total = base + nhil + getfund + covid
    vat = sub_total * VAT_RATE
    return {
        "total_exclusive": base,
        "nhil": nhil,
        "getfund": getfund,
        "covid": covid,
        "sub_total": sub_total,
        "vat": vat,
        "grand_total": sub_total + vat,
    }


def calculate_invoice_totals(assay_ghs_value, rate=INVOICE_RATE_PERCENT) -> Dict[str, float]:
    """
    Full invoice breakdown for an assay GHS value.

    A missing rate or zero value yields zeros throughout.
    """
    total_inclusive = num(assay_ghs_value) * (num(rate) / 100)
    breakdown = apply_levies(total_inclusive / inclusive_factor())
    breakdown["rate"] = num(rate)
    breakdown["rate_charge"] = total_inclusive
    breakdown["total_inclusive"] = total_inclusive
    return breakdown
