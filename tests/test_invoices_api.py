from datetime import datetime, timezone

import pytest

LS = "/api/large-scale-job-cards"
SS = "/api/job-cards"
YEAR = datetime.now(timezone.utc).year

ASSAY_GHS = 92 / 31.1035 * 2000 * 12


def _invoice(client, headers, job_card, prefix=LS):
    return client.post(f"{prefix}/{job_card['id']}/invoices", headers=headers)


def test_invoice_breakdown(client, admin, valued_job_card):
    jc = valued_job_card()
    res = _invoice(client, admin, jc)
    assert res.status_code == 201
    inv = res.json()

    assert inv["invoice_number"] == f"LS-INV-{YEAR}-01"
    assert inv["currency"] == "GHS"
    assert inv["status"] == "pending"
    assert inv["exchange_rate"] == 12
    assert inv["rate"] == 0.258
    assert inv["assay_ghs_value"] == pytest.approx(ASSAY_GHS)
    assert inv["assay_usd_value"] == pytest.approx(ASSAY_GHS / 12)

    inclusive = ASSAY_GHS * 0.258 / 100
    assert inv["total_inclusive"] == pytest.approx(inclusive)
    assert inv["rate_charge"] == pytest.approx(inclusive)
    assert inv["total_exclusive"] == pytest.approx(inclusive / 1.219)
    assert inv["nhil"] == pytest.approx(inv["total_exclusive"] * 0.025)
    assert inv["covid"] == pytest.approx(inv["total_exclusive"] * 0.01)
    assert inv["vat"] == pytest.approx(inv["sub_total"] * 0.15)
    assert inv["grand_total"] == pytest.approx(inclusive)


def test_small_scale_invoice_number(client, admin, valued_job_card):
    jc = valued_job_card("SS-REF", "AGT", prefix=SS)
    inv = _invoice(client, admin, jc, prefix=SS).json()
    assert inv["invoice_number"] == f"SS-INV-{YEAR}-01"
    # card types are not interchangeable
    assert _invoice(client, admin, jc, prefix=LS).status_code == 404


def test_one_invoice_per_job_card(client, admin, valued_job_card):
    jc = valued_job_card()
    assert _invoice(client, admin, jc).status_code == 201
    res = _invoice(client, admin, jc)
    assert res.status_code == 400
    assert res.json() == {"error": "An invoice already exists for this job card"}


def test_invoice_requires_assay(client, admin, job_card_payload):
    jc = client.post(LS, json=job_card_payload(), headers=admin).json()
    res = _invoice(client, admin, jc)
    assert res.status_code == 400
    assert res.json() == {"error": "No assays found for this job card"}


def test_list_and_get(client, admin, valued_job_card):
    first = _invoice(client, admin, valued_job_card("REF-001")).json()
    _invoice(client, admin, valued_job_card("REF-002"))

    listing = client.get("/api/invoices", headers=admin).json()
    assert listing["pagination"]["total"] == 2

    scoped = client.get("/api/invoices", params={"job_card_id": first["job_card_id"]}, headers=admin).json()
    assert [i["id"] for i in scoped["invoices"]] == [first["id"]]

    assert client.get(f"/api/invoices/{first['id']}", headers=admin).json()["invoice_number"] == first["invoice_number"]
    assert client.get("/api/invoices/999", headers=admin).status_code == 404


def test_pay_records_fee_and_closes_job_card(client, admin, valued_job_card):
    jc = valued_job_card()
    inv = _invoice(client, admin, jc).json()

    res = client.post(
        f"/api/invoices/{inv['id']}/pay",
        json={"receipt_number": "RCPT-778", "payment_date": "2025-03-06T10:00:00Z"},
        headers=admin,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["invoice"]["status"] == "paid"
    assert body["invoice"]["paid_at"].startswith("2025-03-06")
    assert body["fee"]["amount_paid"] == pytest.approx(inv["grand_total"])
    assert body["fee"]["receipt_number"] == "RCPT-778"
    assert body["fee"]["currency"] == "GHS"

    detail = client.get(f"{LS}/{jc['id']}", headers=admin).json()
    assert detail["status"] == "paid"

    again = client.post(f"/api/invoices/{inv['id']}/pay", headers=admin)
    assert again.status_code == 400
    assert again.json() == {"error": "Invoice has already been paid"}


def test_pay_without_body(client, admin, valued_job_card):
    inv = _invoice(client, admin, valued_job_card()).json()
    res = client.post(f"/api/invoices/{inv['id']}/pay", headers=admin)
    assert res.status_code == 200
    assert res.json()["fee"]["receipt_number"] is None


def test_assay_is_frozen_after_payment(client, admin, valued_job_card):
    jc = valued_job_card()
    inv = _invoice(client, admin, jc).json()

    # still replaceable while the invoice is pending
    ok = client.put(f"{LS}/{jc['id']}/assays", json={"measurements": [{"gross_weight": 10, "gold_assay": 90}]}, headers=admin)
    assert ok.status_code == 200

    client.post(f"/api/invoices/{inv['id']}/pay", headers=admin)
    res = client.put(f"{LS}/{jc['id']}/assays", json={"measurements": []}, headers=admin)
    assert res.status_code == 409


def test_print_invoice(client, admin, valued_job_card):
    inv = _invoice(client, admin, valued_job_card()).json()
    res = client.get(f"/api/invoices/{inv['id']}/print", headers=admin)
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert inv["invoice_number"] in res.text
    assert "Western Bullion Ltd" in res.text


def test_payment_requires_receipting_permission(client, admin, login, valued_job_card):
    inv = _invoice(client, admin, valued_job_card()).json()

    assayer = login("LARGE_SCALE_ASSAYER")
    assert client.get(f"/api/invoices/{inv['id']}", headers=assayer).status_code == 200
    assert client.post(f"/api/invoices/{inv['id']}/pay", headers=assayer).status_code == 403

    finance = login("FINANCE")
    assert client.post(f"/api/invoices/{inv['id']}/pay", headers=finance).status_code == 200


def test_replacing_assay_revalues_pending_invoice(client, admin, valued_job_card):
    jc = valued_job_card()
    inv = _invoice(client, admin, jc).json()

    res = client.put(
        f"{LS}/{jc['id']}/assays",
        json={"measurements": [{"gross_weight": 1000, "gold_assay": 92}]},
        headers=admin,
    )
    assert res.status_code == 200

    ghs = 920 / 31.1035 * 2000 * 12
    updated = client.get(f"/api/invoices/{inv['id']}", headers=admin).json()
    assert updated["invoice_number"] == inv["invoice_number"]
    assert updated["assay_ghs_value"] == pytest.approx(ghs)
    assert updated["assay_usd_value"] == pytest.approx(ghs / 12)
    assert updated["grand_total"] == pytest.approx(ghs * 0.258 / 100)

    detail = client.get(f"{LS}/{jc['id']}", headers=admin).json()
    assert updated["assay_ghs_value"] == pytest.approx(detail["total_value_ghs"])

    paid = client.post(f"/api/invoices/{inv['id']}/pay", headers=admin).json()
    assert paid["fee"]["amount_paid"] == pytest.approx(updated["grand_total"])
