from datetime import date, timedelta

import pytest

from rentals import create_app
from rentals.extensions import db as _db
from rentals.models import (
    Building, Contract, Invoice, MeterReading, Room, Tenant, User,
)

ADMIN_EMAIL = "admin@rentals.vn"
ADMIN_PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "WTF_CSRF_ENABLED": False,
        "MAIL_SUPPRESS_SEND": True,
        "MAIL_DEFAULT_SENDER": "no-reply@rentals.vn",
        "DEFAULT_LOGIN_EMAIL": ADMIN_EMAIL,
        "DEFAULT_LOGIN_PASSWORD": ADMIN_PASSWORD,
    })
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return User.query.filter_by(email=ADMIN_EMAIL).one()


@pytest.fixture
def auth_client(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def make_building(db, admin):
    def _make(name="Block A", owner=None):
        b = Building(
            name=name,
            address={"house_no": "12", "street": "Le Loi", "ward": "Ben Nghe", "district": "1", "city": "HCMC"},
            owner_id=(owner or admin).id,
        )
        db.session.add(b)
        db.session.commit()
        return b
    return _make


@pytest.fixture
def make_room(db, make_building):
    def _make(code="P101", building=None, rent=2_000_000, status="vacant"):
        building = building or make_building()
        r = Room(code=code, building_id=building.id, floor=1, area=20.0, rent=rent, deposit=rent, status=status)
        db.session.add(r)
        db.session.commit()
        return r
    return _make


_seq = {"n": 0}


@pytest.fixture
def make_tenant(db):
    def _make(full_name="Nguyen Van A", email=None):
        _seq["n"] += 1
        n = _seq["n"]
        t = Tenant(
            full_name=full_name,
            phone=f"09{n:08d}",
            email=email,
            national_id=f"{n:012d}",
            birth_date=date(1995, 5, 1),
            gender="male",
            hometown="Ha Noi",
        )
        db.session.add(t)
        db.session.commit()
        return t
    return _make


@pytest.fixture
def make_contract(db, make_room, make_tenant):
    def _make(room=None, tenants=None, start=None, end=None, code=None, status="active", **kw):
        room = room or make_room()
        tenants = tenants or [make_tenant()]
        today = date.today()
        c = Contract(
            code=code or f"HD-{room.code}-{len(Contract.query.all()) + 1}",
            room_id=room.id,
            representative_id=tenants[0].id,
            start_date=start or today - timedelta(days=60),
            end_date=end or today + timedelta(days=300),
            rent=kw.get("rent", 2_000_000),
            deposit=kw.get("deposit", 2_000_000),
            payment_day=kw.get("payment_day", 5),
            electricity_rate=kw.get("electricity_rate", 3_500),
            water_rate=kw.get("water_rate", 25_000),
            electricity_start=kw.get("electricity_start", 0),
            water_start=kw.get("water_start", 0),
            service_fees=kw.get("service_fees", [{"name": "wifi", "price": 100_000}]),
            status=status,
        )
        c.tenants = tenants
        db.session.add(c)
        db.session.commit()
        return c
    return _make


@pytest.fixture
def make_reading(db, admin):
    def _make(room, month=None, year=None, elec=(100, 150), water=(10, 15)):
        today = date.today()
        r = MeterReading(
            room_id=room.id,
            month=month or today.month,
            year=year or today.year,
            electricity_old=elec[0],
            electricity_new=elec[1],
            water_old=water[0],
            water_new=water[1],
            recorded_by_id=admin.id,
        )
        r.compute_usage()
        db.session.add(r)
        db.session.commit()
        return r
    return _make


@pytest.fixture
def make_invoice(db, make_contract):
    def _make(contract=None, total=2_400_000, paid=0, due_date=None, month=None, year=None, code=None):
        contract = contract or make_contract()
        today = date.today()
        inv = Invoice(
            code=code or f"INV{contract.id}{month or today.month:02d}{year or today.year}",
            contract_id=contract.id,
            room_id=contract.room_id,
            tenant_id=contract.representative_id,
            month=month or today.month,
            year=year or today.year,
            rent=total,
            total=total,
            paid=paid,
            due_date=due_date or today + timedelta(days=10),
        )
        db.session.add(inv)
        db.session.commit()
        return inv
    return _make
