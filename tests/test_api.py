from datetime import date, timedelta

from rentals.extensions import db
from rentals.models import Invoice, User


def _tenant_payload(n, **kw):
    data = {
        "full_name": f"Tenant {n}",
        "phone": f"091234{n:04d}",
        "national_id": f"{n:012d}",
        "birth_date": "1990-01-01",
        "gender": "female",
        "hometown": "Da Nang",
    }
    data.update(kw)
    return data


def test_api_requires_login(client):
    resp = client.get("/api/phong")
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Unauthorized"}


def test_html_dashboard_redirects_to_login(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]


def test_login_rejects_bad_password(client):
    resp = client.post("/api/auth/login", json={"email": "admin@rentals.vn", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_me(auth_client):
    body = auth_client.get("/api/auth/me").get_json()
    assert body["success"] is True
    assert body["data"]["role"] == "admin"


def test_html_login_and_dashboard(client):
    resp = client.post("/login", data={"email": "admin@rentals.vn", "password": "secret123"})
    assert resp.status_code == 302
    page = client.get("/")
    assert page.status_code == 200
    assert b"Dashboard" in page.data


def test_api_and_form_reject_the_same_addresses(client):
    # .local is a special-use domain; both login paths refuse it
    resp = client.post("/api/auth/login", json={"email": "admin@rentals.local", "password": "secret123"})
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("email: Invalid email address")

    page = client.post("/login", data={"email": "admin@rentals.local", "password": "secret123"})
    assert page.status_code == 200
    assert client.get("/").status_code == 302


def test_seeded_admin_email_passes_both_logins(app, client):
    assert app.config["DEFAULT_LOGIN_EMAIL"] == "admin@rentals.vn"
    assert client.post("/api/auth/login", json={"email": "Admin@Rentals.vn", "password": "secret123"}).status_code == 200
    client.post("/api/auth/logout")
    assert client.post("/login", data={"email": "admin@rentals.vn", "password": "secret123"}).status_code == 302


def test_healthz(client):
    assert client.get("/healthz").data == b"ok"


def test_schema_violation_returns_first_message(auth_client):
    resp = auth_client.post("/api/khach-thue", json=_tenant_payload(1, phone="12"))
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["message"].startswith("phone")


def test_not_found(auth_client):
    resp = auth_client.get("/api/hop-dong/999")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Contract not found"


def test_pagination(auth_client):
    for n in range(1, 13):
        assert auth_client.post("/api/khach-thue", json=_tenant_payload(n)).status_code == 201

    body = auth_client.get("/api/khach-thue?page=2&limit=5").get_json()
    assert len(body["data"]) == 5
    assert body["pagination"] == {"page": 2, "limit": 5, "total": 12, "totalPages": 3}

    default = auth_client.get("/api/khach-thue").get_json()
    assert default["pagination"]["limit"] == 10
    assert len(default["data"]) == 10


def test_duplicate_phone_rejected(auth_client):
    auth_client.post("/api/khach-thue", json=_tenant_payload(1))
    resp = auth_client.post("/api/khach-thue", json=_tenant_payload(2, phone="0912340001"))
    assert resp.status_code == 400


def test_only_owner_may_change_building(client, make_building):
    staff = User(name="Staff", email="staff@rentals.vn", role="staff")
    staff.set_password("staffpass")
    db.session.add(staff)
    db.session.commit()
    building = make_building()  # owned by the admin

    client.post("/api/auth/login", json={"email": "staff@rentals.vn", "password": "staffpass"})
    resp = client.put(f"/api/toa-nha/{building.id}", json={"name": "Renamed"})
    assert resp.status_code == 403

    own = client.post("/api/toa-nha", json={
        "name": "Staff block",
        "address": {"street": "Hai Ba Trung", "ward": "6", "district": "3", "city": "HCMC"},
    })
    assert own.status_code == 201
    own_id = own.get_json()["data"]["id"]
    assert client.put(f"/api/toa-nha/{own_id}", json={"name": "Renamed"}).status_code == 200


def test_room_code_is_normalised(auth_client, make_building):
    building = make_building()
    resp = auth_client.post("/api/phong", json={
        "code": "p305", "building_id": building.id, "area": 18.5, "rent": 1_500_000,
    })
    assert resp.status_code == 201
    assert resp.get_json()["data"]["code"] == "P305"


def test_contract_flow_updates_statuses(auth_client, make_room, make_tenant):
    room = make_room()
    tenant = make_tenant()
    today = date.today()
    payload = {
        "code": "hd-2025-01",
        "room_id": room.id,
        "tenant_ids": [tenant.id],
        "representative_id": tenant.id,
        "start_date": (today - timedelta(days=1)).isoformat(),
        "end_date": (today + timedelta(days=365)).isoformat(),
        "rent": 2_000_000,
        "payment_day": 5,
        "electricity_rate": 3_500,
        "water_rate": 25_000,
    }
    resp = auth_client.post("/api/hop-dong", json=payload)
    assert resp.status_code == 201, resp.get_json()
    db.session.expire_all()
    assert room.status == "occupied"
    assert tenant.status == "renting"

    # overlapping active contract on the same room
    clash = dict(payload, code="HD-2025-02")
    assert auth_client.post("/api/hop-dong", json=clash).status_code == 400

    # room with an active contract cannot be deleted
    assert auth_client.delete(f"/api/phong/{room.id}").status_code == 400


def test_contract_end_before_start(auth_client, make_room, make_tenant):
    room, tenant = make_room(), make_tenant()
    resp = auth_client.post("/api/hop-dong", json={
        "code": "HDX", "room_id": room.id, "tenant_ids": [tenant.id], "representative_id": tenant.id,
        "start_date": "2025-05-01", "end_date": "2025-04-01", "rent": 1, "payment_day": 1,
        "electricity_rate": 1, "water_rate": 1,
    })
    assert resp.status_code == 400
    assert "End date" in resp.get_json()["message"]


def test_meter_reading_cannot_go_backwards(auth_client, make_room):
    room = make_room()
    resp = auth_client.post("/api/chi-so-dien-nuoc", json={
        "room_id": room.id, "month": 3, "year": 2025,
        "electricity_old": 200, "electricity_new": 150, "water_old": 1, "water_new": 2,
    })
    assert resp.status_code == 400

    ok = auth_client.post("/api/chi-so-dien-nuoc", json={
        "room_id": room.id, "month": 3, "year": 2025,
        "electricity_old": 100, "electricity_new": 150, "water_old": 10, "water_new": 15,
    })
    assert ok.status_code == 201
    assert ok.get_json()["data"]["electricity_usage"] == 50

    dup = auth_client.post("/api/chi-so-dien-nuoc", json={
        "room_id": room.id, "month": 3, "year": 2025,
        "electricity_old": 100, "electricity_new": 150, "water_old": 10, "water_new": 15,
    })
    assert dup.status_code == 400


def test_invoice_put_ignores_client_status(auth_client, make_contract):
    contract = make_contract()
    created = auth_client.post("/api/hoa-don", json={
        "contract_id": contract.id, "month": 7, "year": 2099,
        "electricity_end": 50, "water_end": 5,
        "status": "paid", "paid": 999,
    })
    assert created.status_code == 201
    data = created.get_json()["data"]
    assert data["status"] == "unpaid"
    assert data["paid"] == 0

    resp = auth_client.put("/api/hoa-don", json={"id": data["id"], "status": "paid", "water_end": 6})
    assert resp.status_code == 200
    updated = resp.get_json()["data"]
    assert updated["status"] == "unpaid"
    assert updated["water_usage"] == 6
    assert updated["remaining"] == updated["total"]


def test_latest_reading_endpoint(auth_client, make_contract):
    contract = make_contract(electricity_start=11, water_start=2)
    body = auth_client.get(f"/api/hoa-don/latest-reading?contract_id={contract.id}&month=1&year=2025").get_json()
    assert body["data"]["electricity_start"] == 11
    assert body["data"]["is_first_invoice"] is True
    assert auth_client.get("/api/hoa-don/latest-reading").status_code == 400


def test_payment_api_round_trip(auth_client, make_invoice):
    inv = make_invoice(total=2_400_000)

    too_much = auth_client.post("/api/thanh-toan", json={"invoice_id": inv.id, "amount": 2_400_001, "method": "cash"})
    assert too_much.status_code == 400

    missing_transfer = auth_client.post("/api/thanh-toan", json={
        "invoice_id": inv.id, "amount": 1, "method": "bank_transfer",
    })
    assert missing_transfer.status_code == 400

    resp = auth_client.post("/api/thanh-toan", json={"invoice_id": inv.id, "amount": 2_400_000, "method": "cash"})
    assert resp.status_code == 201
    payment_id = resp.get_json()["data"]["id"]
    assert resp.get_json()["data"]["invoice"]["status"] == "paid"

    resp = auth_client.delete(f"/api/thanh-toan/{payment_id}")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["invoice"]["status"] == "unpaid"
    db.session.expire_all()
    assert db.session.get(Invoice, inv.id).remaining == 2_400_000


def test_delete_invoice_by_query_param(auth_client, make_invoice):
    inv = make_invoice()
    assert auth_client.delete("/api/hoa-don").status_code == 400
    assert auth_client.delete(f"/api/hoa-don?id={inv.id}").status_code == 200
    assert auth_client.delete(f"/api/hoa-don?id={inv.id}").status_code == 404


def test_auto_invoice_endpoints(auth_client, make_contract, make_reading):
    contract = make_contract()
    status = auth_client.get("/api/auto-invoice").get_json()["data"]
    assert status["can_run"] is False

    make_reading(contract.room)
    run = auth_client.post("/api/auto-invoice").get_json()
    assert run["data"]["created_count"] == 1
    assert run["data"]["errors"] == []


def test_incident_timestamps(auth_client, make_room, make_tenant):
    room, tenant = make_room(), make_tenant()
    created = auth_client.post("/api/su-co", json={
        "room_id": room.id, "tenant_id": tenant.id, "title": "Leaking tap",
        "description": "Bathroom tap drips", "type": "utilities",
    }).get_json()["data"]
    assert created["started_at"] is None

    started = auth_client.put(f"/api/su-co/{created['id']}", json={"status": "in_progress"}).get_json()["data"]
    assert started["started_at"] is not None

    done = auth_client.put(f"/api/su-co/{created['id']}", json={"status": "done"}).get_json()["data"]
    assert done["completed_at"] is not None
    assert done["started_at"] == started["started_at"]


def test_notifications_and_alerts(auth_client, make_invoice, make_tenant):
    tenant = make_tenant(email="tenant@example.com")
    make_invoice(total=500_000, due_date=date.today() - timedelta(days=3))

    created = auth_client.post("/api/thong-bao", json={
        "title": "Water cut", "content": "No water Sunday morning", "recipients": [tenant.id],
    })
    assert created.status_code == 201
    nid = created.get_json()["data"]["id"]

    read = auth_client.post(f"/api/thong-bao/{nid}/read", json={"tenant_id": tenant.id}).get_json()
    assert read["data"]["read_by"] == [tenant.id]

    feed = auth_client.get("/api/notifications?type=overdue_invoices").get_json()
    assert feed["pagination"]["total"] == 1
    assert feed["data"][0]["type"] == "overdue_invoice"

    assert auth_client.get("/api/notifications?type=bogus").status_code == 400


def test_alert_feed_is_paged(auth_client, make_room, make_contract, make_invoice):
    past_due = date.today() - timedelta(days=3)
    first = make_room("P501")
    for i, code in enumerate(("P501", "P502", "P503")):
        room = first if i == 0 else make_room(code, building=first.building)
        make_invoice(contract=make_contract(room=room, code=f"HD-{code}"), total=500_000, due_date=past_due)

    page = auth_client.get("/api/notifications?type=overdue_invoices&page=2&limit=2").get_json()
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
    assert len(page["data"]) == 1

    beyond = auth_client.get("/api/notifications?type=overdue_invoices&page=5&limit=2").get_json()
    assert beyond["data"] == []
    assert beyond["pagination"]["total"] == 3


def test_dashboard_stats(auth_client, make_room, make_invoice):
    make_room("P900", status="maintenance")
    inv = make_invoice(total=1_000_000)
    auth_client.post("/api/thanh-toan", json={"invoice_id": inv.id, "amount": 300_000, "method": "cash"})

    stats = auth_client.get("/api/dashboard/stats").get_json()["data"]
    assert stats["maintenance_rooms"] == 1
    assert stats["revenue_month"] == 300_000
    assert stats["revenue_year"] == 300_000
    assert stats["invoices_due_soon"] == 0
