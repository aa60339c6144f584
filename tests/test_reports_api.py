from datetime import timedelta

import pytest

from common.helpers import now_utc
from modules.report.service import report_service

LS = "/api/large-scale-job-cards"
SS = "/api/job-cards"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def paid_job_card(client, admin, valued_job_card):
    jc = valued_job_card()
    inv = client.post(f"{LS}/{jc['id']}/invoices", headers=admin).json()
    client.post(f"/api/invoices/{inv['id']}/pay", json={"receipt_number": "RCPT-1"}, headers=admin)
    return jc, inv


def test_shipment_summary_csv(client, admin, valued_job_card):
    valued_job_card("REF-001", "WBL")
    valued_job_card("REF-002", "WBL")
    valued_job_card("REF-003", "AGT", prefix=SS)

    res = client.get("/api/reports", params={"report": "weekly-summary"}, headers=admin)
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    disposition = res.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="report-weekly-summary-')
    assert disposition.endswith('.csv"')

    lines = res.text.strip().split("\n")
    assert lines[0] == "Exporter,NetGold_g,NetSilver_g,EstimatedValue_USD"
    rows = {line.split(",")[0]: line.split(",")[1:3] for line in lines[1:]}
    assert rows == {
        "Western Bullion Ltd": ["184.00", "0.00"],
        "Ashanti Gold Traders": ["92.00", "0.00"],
    }


def test_shipment_comprehensive_csv_has_dates(client, admin, valued_job_card):
    valued_job_card()
    res = client.get("/api/reports", params={"report": "monthly-comprehensive"}, headers=admin)
    lines = res.text.strip().split("\n")
    assert lines[0] == "Date,Exporter,NetGold_g,NetSilver_g,EstimatedValue_USD"
    assert len(lines) == 2
    assert ",Western Bullion Ltd,92.00," in lines[1]


def test_unknown_period_defaults_to_thirty_days(client, admin):
    body = client.get("/api/dashboard/exporters", params={"report": "yearly-summary"}, headers=admin).json()
    assert body["period_days"] == 30
    assert body["is_summary"] is True
    assert body["rows"] == []


def test_shipment_xlsx(client, admin, valued_job_card):
    valued_job_card()
    res = client.get("/api/reports", params={"report": "daily-summary", "format": "xlsx"}, headers=admin)
    assert res.status_code == 200
    assert res.headers["content-type"] == XLSX
    assert res.headers["content-disposition"].endswith('.xlsx"')
    # zip container
    assert res.content[:2] == b"PK"


def test_revenue_csv(client, admin, paid_job_card):
    _, inv = paid_job_card
    res = client.get("/api/reports", params={"feesReport": "weekly-summary"}, headers=admin)
    assert res.status_code == 200
    assert 'filename="revenue-weekly-summary-' in res.headers["content-disposition"]

    lines = res.text.strip().split("\n")
    assert lines[0] == (
        "Exporter,Total_Revenue_USD,Job_Cards,Assays,Avg_Value_Per_Card,Market_Share_Percent,Last_Activity"
    )
    cells = lines[1].split(",")
    assert cells[0] == "Western Bullion Ltd"
    assert float(cells[1]) == pytest.approx(inv["grand_total"], abs=0.01)
    assert cells[2:4] == ["1", "1"]
    assert cells[5] == "100.00"


def test_dashboard_exporters_rows(client, admin, valued_job_card):
    valued_job_card()
    body = client.get("/api/dashboard/exporters", params={"report": "weekly-comprehensive"}, headers=admin).json()
    assert body["report"] == "weekly-comprehensive"
    assert body["is_weekly"] is True
    assert body["commodity_price"] == 2000
    [row] = body["rows"]
    assert row["exporter"] == "Western Bullion Ltd"
    assert row["net_gold_g"] == pytest.approx(92)
    assert row["estimated_value_usd"] == pytest.approx(92 / 31.1035 * 2000)


def test_dashboard_fees(client, admin, paid_job_card):
    _, inv = paid_job_card
    body = client.get("/api/dashboard/fees", headers=admin).json()
    assert body["report"] == "daily-summary"
    assert body["total_revenue"] == pytest.approx(inv["grand_total"])
    assert body["total_job_cards"] == 1
    assert body["exporter_stats"][0]["market_share_percent"] == pytest.approx(100)
    assert "transaction_details" not in body

    detailed = client.get("/api/dashboard/fees", params={"feesReport": "monthly-comprehensive"}, headers=admin).json()
    [tx] = detailed["transaction_details"]
    assert tx["job_card_type"] == "Large Scale"
    assert tx["receipt_number"] == "RCPT-1"
    assert tx["currency"] == "GHS"


def test_dashboard_fees_without_payments(client, admin, valued_job_card):
    valued_job_card()
    body = client.get("/api/dashboard/fees", headers=admin).json()
    assert body["exporter_stats"] == []
    assert body["total_revenue"] == 0
    assert body["avg_revenue_per_job_card"] == 0


def test_dashboard_stats(client, admin, paid_job_card, valued_job_card, job_card_payload):
    valued_job_card("REF-002")
    client.post(LS, json=job_card_payload("REF-003"), headers=admin)

    stats = client.get("/api/dashboard/stats", headers=admin).json()
    assert stats["total_job_cards"] == 3
    assert stats["pending_job_cards"] == 1
    assert stats["completed_job_cards"] == 1
    assert stats["paid_job_cards"] == 1
    assert stats["total_exporters"] == 3
    assert stats["gold_price"] == 2000
    assert stats["exchange_rate"] == 12
    assert stats["silver_price"] == 25

    [paid_month] = [m for m in stats["monthly_revenue"] if m["paid_amount"]]
    assert paid_month["exporter"] == "Western Bullion Ltd"
    assert paid_month["total_amount"] >= paid_month["paid_amount"]


@pytest.mark.parametrize("report_type", [
    "monthly-shipment-all-exporters",
    "monthly-shipment-gold-exporters",
])
def test_printable_monthly_reports(client, admin, valued_job_card, report_type):
    valued_job_card("REF-001", "VPM")
    res = client.post("/api/reports/generate-pdf", json={"reportType": report_type}, headers=admin)
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert res.headers["content-disposition"].startswith('attachment; filename="Monthly_Shipment_Report')
    assert "Volta Precious Metals" in res.text


def test_printable_weekly_exporter_report(client, admin, exporters, valued_job_card):
    jc = valued_job_card()
    week_start = jc["created_at"][:10]
    res = client.post("/api/reports/generate-pdf", json={
        "reportType": "weekly-shipment-exporter",
        "exporterId": exporters["WBL"],
        "weekStart": week_start,
    }, headers=admin)
    assert res.status_code == 200
    assert jc["human_readable_id"] in res.text
    assert f"Week of {week_start}" in res.text


def test_printable_analysis_reports(client, admin, exporters, valued_job_card):
    jc = valued_job_card()
    week_start = jc["created_at"][:10]
    sample_id = jc["assays"][0]["human_readable_id"]

    res = client.post("/api/reports/generate-pdf", json={
        "reportType": "monthly-analysis-all-exporters", "weekStart": week_start,
    }, headers=admin)
    assert res.status_code == 200
    assert sample_id in res.text
    assert "Western Bullion Ltd" in res.text

    res = client.post("/api/reports/generate-pdf", json={
        "report_type": "monthly-analysis-exporter",
        "exporter_id": exporters["WBL"],
        "week_start": week_start,
    }, headers=admin)
    assert res.status_code == 200
    assert sample_id in res.text
    assert "92.00" in res.text


def test_printable_report_validation(client, admin, exporters):
    url = "/api/reports/generate-pdf"
    res = client.post(url, json={"reportType": "quarterly"}, headers=admin)
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid report type"}

    res = client.post(url, json={"reportType": "weekly-shipment-exporter", "exporterId": exporters["WBL"]}, headers=admin)
    assert res.json() == {"error": "Exporter ID and week start required"}

    res = client.post(url, json={"reportType": "monthly-analysis-all-exporters"}, headers=admin)
    assert res.json() == {"error": "Week start required"}


def test_report_types(client, admin):
    body = client.get("/api/reports/types", headers=admin).json()
    assert "weekly-shipment-exporter" in body["report_types"]
    assert len(body["report_types"]) == 5


def test_report_permissions(client, login):
    assayer = login("SMALL_SCALE_ASSAYER")
    denied = client.get("/api/reports", headers=assayer)
    assert denied.status_code == 403
    assert denied.json() == {"error": "Your role does not have access to: Reports"}
    assert client.get("/api/dashboard/fees", headers=assayer).status_code == 200
    assert client.get("/api/dashboard/stats", headers=assayer).status_code == 200

    finance = login("FINANCE")
    assert client.get("/api/reports", headers=finance).status_code == 200


def test_reports_require_login(client):
    assert client.get("/api/reports").status_code == 401


def test_analysis_report_prints_grams_for_kilogram_cards(client, admin, exporters, prices, job_card_payload):
    jc = client.post(LS, json=job_card_payload(unit_of_measure="kg"), headers=admin).json()
    res = client.post(
        f"{LS}/{jc['id']}/assays",
        json={"measurements": [{"gross_weight": 2, "gold_assay": 90}]},
        headers=admin,
    )
    assert res.status_code == 201
    week_start = client.get(f"{LS}/{jc['id']}", headers=admin).json()["created_at"][:10]

    res = client.post("/api/reports/generate-pdf", json={
        "reportType": "monthly-analysis-exporter",
        "exporterId": exporters["WBL"],
        "weekStart": week_start,
    }, headers=admin)
    assert res.status_code == 200
    assert "1800.00" in res.text
    assert "1.80" not in res.text


def test_load_assays_caps_assays_not_measurements(client, admin, db, valued_job_card):
    valued_job_card("REF-001")
    newest = valued_job_card("REF-002")
    client.put(
        f"{LS}/{newest['id']}/assays",
        json={"measurements": [{"gross_weight": 10, "gold_assay": 90}, {"gross_weight": 20, "gold_assay": 91}]},
        headers=admin,
    )

    end = now_utc() + timedelta(days=1)
    start = end - timedelta(days=7)
    [assay] = report_service.load_assays(db, start, end, limit=1)
    assert assay.human_readable_id == newest["assays"][0]["human_readable_id"]
    assert len(assay.measurements) == 2

    assert len(report_service.load_assays(db, start, end)) == 2
