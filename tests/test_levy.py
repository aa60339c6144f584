import pytest

from modules.valuation.levy import apply_levies, calculate_invoice_totals, inclusive_factor


def test_levy_chain_on_exclusive_base():
    result = apply_levies(1000)
    assert result["nhil"] == pytest.approx(25)
    assert result["getfund"] == pytest.approx(25)
    assert result["covid"] == pytest.approx(10)
    assert result["sub_total"] == pytest.approx(1060)
    assert result["vat"] == pytest.approx(159)
    assert result["grand_total"] == pytest.approx(1219)


def test_inclusive_factor():
    assert inclusive_factor() == pytest.approx(1.219)


def test_invoice_totals_back_out_exclusive_base():
    totals = calculate_invoice_totals(100_000, rate=0.258)
    assert totals["total_inclusive"] == pytest.approx(258)
    assert totals["rate_charge"] == pytest.approx(258)
    assert totals["total_exclusive"] == pytest.approx(258 / 1.219)
    assert totals["grand_total"] == pytest.approx(258)
    assert totals["rate"] == 0.258


def test_zero_value_yields_zero_totals():
    totals = calculate_invoice_totals(0)
    assert all(totals[k] == 0 for k in ("total_inclusive", "nhil", "vat", "grand_total"))
    assert calculate_invoice_totals(1000, rate=None)["grand_total"] == 0
