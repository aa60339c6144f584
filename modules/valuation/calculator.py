"""
Valuation Module - Calculator
==============================
Turns assay measurements plus a spot price into monetary value.

Pipeline per metal (gold and silver are valued independently, then combined):
    net weight per piece → sum (job card unit) → grams → troy ounces
    → USD (× price per ounce) → GHS (× exchange rate)

Net weight policy: a supplied net weight is trusted as-is; when it is absent
it is derived from gross weight × assay percent / 100. Missing numeric fields
contribute zero and never raise.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from common.helpers import num
from modules.valuation.units import to_grams, grams_to_troy_ounces, convert_usd_to_ghs


@dataclass(frozen=True)
class MetalValuation:
    net_weight_grams: float = 0.0
    ounces: float = 0.0
    usd_value: float = 0.0
    ghs_value: float = 0.0

    def __add__(self, other: "MetalValuation") -> "MetalValuation":
        return MetalValuation(
            net_weight_grams=self.net_weight_grams + other.net_weight_grams,
            ounces=self.ounces + other.ounces,
            usd_value=self.usd_value + other.usd_value,
            ghs_value=self.ghs_value + other.ghs_value,
        )


@dataclass(frozen=True)
class PieceWeights:
    """Net weights of one measured piece, in the job card's unit."""
    net_gold_weight: float
    net_silver_weight: float


@dataclass(frozen=True)
class AssayValuation:
    gold: MetalValuation = field(default_factory=MetalValuation)
    silver: MetalValuation = field(default_factory=MetalValuation)
    pieces: List[PieceWeights] = field(default_factory=list)

    @property
    def combined_usd(self) -> float:
        return self.gold.usd_value + self.silver.usd_value

    @property
    def combined_ghs(self) -> float:
        return self.gold.ghs_value + self.silver.ghs_value

    def __add__(self, other: "AssayValuation") -> "AssayValuation":
        return AssayValuation(
            gold=self.gold + other.gold,
            silver=self.silver + other.silver,
            pieces=self.pieces + other.pieces,
        )


def _field(measurement, name: str):
    if isinstance(measurement, dict):
        return measurement.get(name)
    return getattr(measurement, name, None)


def net_weight(gross_weight, assay_percent, stored_net=None) -> float:
    """Stored net weight when present, else gross × (assay% / 100)."""
    if stored_net is not None:
        return num(stored_net)
    return num(gross_weight) * (num(assay_percent) / 100)


def value_metal(total_net_weight, unit, price_per_oz, exchange_rate) -> MetalValuation:
    """Value an already-summed net weight expressed in `unit`."""
    grams = to_grams(num(total_net_weight), unit)
    ounces = grams_to_troy_ounces(grams)
    usd = ounces * num(price_per_oz)
    return MetalValuation(
        net_weight_grams=grams,
        ounces=ounces,
        usd_value=usd,
        ghs_value=convert_usd_to_ghs(usd, num(exchange_rate)),
    )


def value_measurements(
    measurements: Iterable,
    commodity_price,
    exchange_rate,
    unit: str = "g",
    silver_price=0,
) -> AssayValuation:
    """
    Value an assay's measurements.

    Args:
        measurements: dicts or objects with gross_weight, gold_assay,
            net_gold_weight, silver_assay, net_silver_weight
        commodity_price: gold spot price, USD per troy ounce
        exchange_rate: GHS per USD
        unit: weight unit of the measurements (job card unit of measure)
        silver_price: silver spot price, USD per troy ounce

    Returns:
        AssayValuation with per-metal totals and the resolved per-piece net weights.
    """
    pieces = []
    for m in measurements:
        gross = _field(m, "gross_weight")
        pieces.append(PieceWeights(
            net_gold_weight=net_weight(gross, _field(m, "gold_assay"), _field(m, "net_gold_weight")),
            net_silver_weight=net_weight(gross, _field(m, "silver_assay"), _field(m, "net_silver_weight")),
        ))

    total_gold = sum(p.net_gold_weight for p in pieces)
    total_silver = sum(p.net_silver_weight for p in pieces)

    return AssayValuation(
        gold=value_metal(total_gold, unit, commodity_price, exchange_rate),
        silver=value_metal(total_silver, unit, silver_price, exchange_rate),
        pieces=pieces,
    )


def combine(valuations: Iterable[AssayValuation]) -> AssayValuation:
    """Sum several assay valuations (job card totals). Empty input → zeros."""
    total: Optional[AssayValuation] = None
    for v in valuations:
        total = v if total is None else total + v
    return total or AssayValuation()
