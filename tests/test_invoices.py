from datetime import date

import pytest

from rentals.billing import invoices
from rentals.billing.ledger import apply_payment
from rentals.errors import NotFoundError, ValidationError


def test_due_date_is_clamped_to_month_end():
    assert invoices.due_date_for(31, 2, 2025) == date(2025, 2, 28)
    assert invoices.due_date_for(31, 2, 2024) == date(2024, 2, 29)
    assert invoices.due_date_for(10, 4, 2025) == date(2025, 4, 10)


def test_first_invoice_starts_from_contract_readings(db, make_contract):
    contract = make_contract(electricity_start=42, water_start=7)
    data = invoices.latest_reading(contract, 3, 2025)
    assert data["electricity_start"] == 42
    assert data["water_start"] == 7
    assert data["is_first_invoice"] is True


def test_readings_carry_forward(db, make_contract):
    contract = make_contract(electricity_start=100, water_start=10)
    invoices.create_invoice({
        "contract_id": contract.id, "month": 1, "year": 2025,
        "electricity_end": 150, "water_end": 15,
    })
    second = invoices.create_invoice({
        "contract_id": contract.id, "month": 2, "year": 2025,
        "electricity_end": 190, "water_end": 19,
    })
    assert second.electricity_start == 150
    assert second.water_start == 15
    assert second.electricity_usage == 40
    assert second.total == 2_000_000 + 40 * 3_500 + 4 * 25_000 + 100_000
    assert invoices.latest_reading(contract, 3, 2025)["last_invoice_period"] == "2/2025"


def test_duplicate_period_is_rejected(db, make_contract):
    contract = make_contract()
    invoices.create_invoice({"contract_id": contract.id, "month": 5, "year": 2025})
    with pytest.raises(ValidationError):
        invoices.create_invoice({"contract_id": contract.id, "month": 5, "year": 2025})


def test_unknown_contract(db):
    with pytest.raises(NotFoundError):
        invoices.create_invoice({"contract_id": 404, "month": 5, "year": 2025})


def test_code_generated_when_missing_or_taken(db, make_contract):
    contract = make_contract()
    first = invoices.create_invoice({"contract_id": contract.id, "month": 5, "year": 2025, "code": "hd-x"})
    assert first.code == "HD-X"
    second = invoices.create_invoice({"contract_id": contract.id, "month": 6, "year": 2025, "code": "HD-X"})
    assert second.code != "HD-X"
    assert second.code.startswith("HD")


def test_update_recomputes_and_keeps_paid(db, admin, make_contract):
    contract = make_contract(electricity_start=0, water_start=0)
    inv = invoices.create_invoice({
        "contract_id": contract.id, "month": 5, "year": 2099,
        "electricity_end": 10, "water_end": 1,
    })
    apply_payment(inv.id, 100_000, "cash", recorded_by_id=admin.id)

    invoices.update_invoice(inv, {"electricity_end": 20})
    assert inv.electricity_usage == 20
    assert inv.paid == 100_000
    assert inv.remaining == inv.total - 100_000


def test_update_below_paid_is_rejected(db, admin, make_contract):
    contract = make_contract()
    inv = invoices.create_invoice({"contract_id": contract.id, "month": 5, "year": 2099})
    apply_payment(inv.id, inv.total, "cash", recorded_by_id=admin.id)
    with pytest.raises(ValidationError):
        invoices.update_invoice(inv, {"rent": 0})


def test_moving_the_period_moves_the_due_date(db, make_contract):
    contract = make_contract(payment_day=10)
    inv = invoices.create_invoice({"contract_id": contract.id, "month": 5, "year": 2099})
    assert inv.due_date == date(2099, 5, 10)

    invoices.update_invoice(inv, {"month": 6})
    assert inv.due_date == date(2099, 6, 10)

    invoices.update_invoice(inv, {"month": 7, "due_date": date(2099, 7, 20)})
    assert inv.due_date == date(2099, 7, 20)


def test_note_edit_keeps_the_due_date(db, make_contract):
    contract = make_contract(payment_day=10)
    inv = invoices.create_invoice({
        "contract_id": contract.id, "month": 5, "year": 2099, "due_date": date(2099, 5, 25),
    })
    invoices.update_invoice(inv, {"note": "paid in person"})
    assert inv.due_date == date(2099, 5, 25)


def test_created_as_of_a_past_day(db, make_contract):
    contract = make_contract(payment_day=15)
    inv = invoices.create_invoice(
        {"contract_id": contract.id, "month": 3, "year": 2024},
        today=date(2024, 3, 10),
    )
    assert inv.due_date == date(2024, 3, 15)
    assert inv.status == "unpaid"
    assert inv.code.startswith("HD20240310")
