import pytest

from config.settings import GRAMS_PER_TROY_OUNCE
from modules.valuation.units import (
    to_grams, unit_factor, grams_to_troy_ounces, troy_ounces_to_grams, convert_usd_to_ghs,
)


@pytest.mark.parametrize("value", [0, 1, 12.5, 1000])
def test_to_grams_conversions(value):
    assert to_grams(value, "g") == value
    assert to_grams(value, "kg") == pytest.approx(value * 1000)
    assert to_grams(value, "lb") == pytest.approx(value * 453.59237)


def test_unit_tags_are_case_insensitive():
    assert to_grams(2, "KG") == pytest.approx(2000)
    assert to_grams(2, " Pounds ") == pytest.approx(2 * 453.59237)


@pytest.mark.parametrize("unit", ["oz", "stone", "", None])
def test_unknown_unit_behaves_as_grams(unit):
    assert unit_factor(unit) == 1.0
    assert to_grams(42, unit) == 42


def test_missing_value_is_zero():
    assert to_grams(None, "kg") == 0


def test_troy_ounce_round_trip():
    for grams in (0.5, 31.1035, 92, 12345.678):
        assert grams_to_troy_ounces(troy_ounces_to_grams(grams)) == pytest.approx(grams)
    assert troy_ounces_to_grams(1) == GRAMS_PER_TROY_OUNCE


def test_negative_weight_passes_through():
    assert grams_to_troy_ounces(-31.1035) == pytest.approx(-1)


def test_usd_to_ghs():
    assert convert_usd_to_ghs(100, 12) == 1200
    assert convert_usd_to_ghs(100, None) == 0
