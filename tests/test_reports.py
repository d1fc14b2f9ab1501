import csv
import io
from datetime import date, datetime, timedelta

import pytest

from rentals.errors import ValidationError
from rentals.extensions import db
from rentals.models import Payment
from rentals.reports import build_report, report_window


def _pay(invoice, amount, method, when, user):
    db.session.add(Payment(invoice_id=invoice.id, amount=amount, method=method, paid_on=when, recorded_by_id=user.id))
    db.session.commit()


def test_window_defaults_to_current_month():
    assert report_window(today=date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert report_window(today=date(2024, 12, 31)) == (date(2024, 12, 1), date(2024, 12, 31))


def test_window_rejects_end_before_start():
    with pytest.raises(ValidationError):
        report_window(date(2024, 3, 2), date(2024, 3, 1))


def test_revenue_groups_by_month_and_method(db, admin, make_invoice):
    inv = make_invoice(total=10_000_000)
    _pay(inv, 1_000_000, "cash", datetime(2024, 1, 5, 9), admin)
    _pay(inv, 2_000_000, "bank_transfer", datetime(2024, 1, 31, 23, 30), admin)
    _pay(inv, 500_000, "cash", datetime(2024, 2, 2), admin)
    _pay(inv, 700_000, "cash", datetime(2024, 3, 1), admin)

    data = build_report("revenue", date(2024, 1, 1), date(2024, 2, 29))

    assert data["period"] == {"start": "2024-01-01", "end": "2024-02-29"}
    assert data["total_revenue"] == 3_500_000
    assert data["total_payments"] == 3
    assert data["revenue_by_month"] == [
        {"year": 2024, "month": 1, "total": 3_000_000, "count": 2},
        {"year": 2024, "month": 2, "total": 500_000, "count": 1},
    ]
    assert data["revenue_by_method"] == [
        {"method": "bank_transfer", "total": 2_000_000, "count": 1},
        {"method": "cash", "total": 1_500_000, "count": 2},
    ]


def test_room_occupancy(db, make_room):
    first = make_room("P101", status="occupied")
    make_room("P102", building=first.building)
    make_room("P103", building=first.building, status="maintenance")

    data = build_report("rooms")
    assert data["total_rooms"] == 3
    assert data["occupied_rooms"] == 1
    assert data["occupancy_rate"] == 33.33


def test_contracts_created_in_window(db, make_contract):
    contract = make_contract(code="HD100")
    today = date.today()

    data = build_report("contracts", today - timedelta(days=1), today + timedelta(days=1))
    assert data["total_contracts"] == 1
    row = data["contracts"][0]
    assert row["code"] == "HD100"
    assert row["room"] == contract.room.code
    assert data["by_status"] == [{"status": "active", "count": 1, "total_rent": 2_000_000}]


def test_reports_endpoint(auth_client, admin, make_invoice):
    inv = make_invoice(total=5_000_000)
    _pay(inv, 1_200_000, "e_wallet", datetime(2024, 5, 20), admin)

    body = auth_client.get("/api/reports?type=payments&start_date=2024-05-01&end_date=2024-05-31").get_json()
    assert body["success"] is True
    assert body["data"]["total_amount"] == 1_200_000
    assert body["data"]["payments"][0]["invoice"] == inv.code
    assert body["data"]["payments"][0]["recorded_by"] == admin.name


def test_reports_csv_export(auth_client, admin, make_invoice):
    inv = make_invoice(total=5_000_000)
    _pay(inv, 1_200_000, "cash", datetime(2024, 5, 20), admin)

    resp = auth_client.get("/api/reports?type=payments&start_date=2024-05-01&end_date=2024-05-31&format=csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "payments-report.csv" in resp.headers["Content-Disposition"]
    rows = list(csv.DictReader(io.StringIO(resp.get_data(as_text=True))))
    assert rows == [{
        "paid_on": "2024-05-20", "invoice": inv.code, "amount": "1200000",
        "method": "cash", "recorded_by": admin.name,
    }]


def test_reports_reject_bad_input(auth_client):
    assert auth_client.get("/api/reports?type=tenants").status_code == 400
    resp = auth_client.get("/api/reports?type=revenue&start_date=2024-05-31&end_date=2024-05-01")
    assert resp.status_code == 400
    assert auth_client.get("/api/reports?type=revenue&format=xml").status_code == 400


def test_reports_require_login(client):
    assert client.get("/api/reports").status_code == 401
