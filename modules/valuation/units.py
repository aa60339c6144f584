"""
Valuation Module - Unit & Currency Conversion
==============================================
Weight normalization (g / kg / lb → grams), troy ounces, and USD → GHS.
Every weight and currency conversion in the app goes through here.
"""

from config.settings import GRAMS_PER_TROY_OUNCE

GRAMS_PER_KILOGRAM = 1000.0
GRAMS_PER_POUND = 453.59237

_UNIT_FACTORS = {
    "g": 1.0, "gram": 1.0, "grams": 1.0,
    "kg": GRAMS_PER_KILOGRAM, "kilogram": GRAMS_PER_KILOGRAM, "kilograms": GRAMS_PER_KILOGRAM,
    "lb": GRAMS_PER_POUND, "lbs": GRAMS_PER_POUND, "pound": GRAMS_PER_POUND, "pounds": GRAMS_PER_POUND,
}

UNIT_TAGS = tuple(_UNIT_FACTORS.keys())


def unit_factor(unit) -> float:
    """Grams per one `unit`. Unknown or missing units are treated as grams."""
    if not unit:
        return 1.0
    return _UNIT_FACTORS.get(str(unit).strip().lower(), 1.0)


def to_grams(value, unit="g") -> float:
    """Convert a magnitude in `unit` to grams (case-insensitive unit tag)."""
    return float(value or 0) * unit_factor(unit)


def grams_to_troy_ounces(grams) -> float:
    """Negative or zero input passes through the arithmetic unchanged."""
    return float(grams or 0) / GRAMS_PER_TROY_OUNCE


def troy_ounces_to_grams(ounces) -> float:
    return float(ounces or 0) * GRAMS_PER_TROY_OUNCE


def convert_usd_to_ghs(usd, exchange_rate) -> float:
    """GHS value of `usd` at `exchange_rate` (GHS per USD). No sanity checks on the rate."""
    return float(usd or 0) * float(exchange_rate or 0)
