from datetime import date, timedelta

import pytest

from rentals.billing import ledger
from rentals.errors import NotFoundError, ValidationError
from rentals.models import Payment
from rentals.models.billing import reference_date


def _snapshot(inv):
    return inv.paid, inv.remaining, inv.status


def test_paying_the_remaining_balance_settles_invoice(db, admin, make_invoice):
    inv = make_invoice(total=2_400_000)
    ledger.apply_payment(inv.id, 2_400_000, "cash", recorded_by_id=admin.id)
    assert inv.paid == 2_400_000
    assert inv.remaining == 0
    assert inv.status == "paid"


def test_paid_after_due_date_is_paid_not_overdue(db, admin, make_invoice):
    inv = make_invoice(total=2_400_000, due_date=date.today() - timedelta(days=20))
    assert inv.status == "overdue"
    ledger.apply_payment(inv.id, 2_400_000, "cash", recorded_by_id=admin.id)
    assert (inv.remaining, inv.status) == (0, "paid")


def test_partial_payment(db, admin, make_invoice):
    inv = make_invoice(total=2_400_000)
    ledger.apply_payment(inv.id, 400_000, "e_wallet", recorded_by_id=admin.id)
    assert _snapshot(inv) == (400_000, 2_000_000, "partially_paid")


def test_overpayment_is_rejected_without_changes(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000)
    before = _snapshot(inv)
    with pytest.raises(ValidationError):
        ledger.apply_payment(inv.id, 1_000_001, "cash", recorded_by_id=admin.id)
    db.session.rollback()
    db.session.refresh(inv)
    assert _snapshot(inv) == before
    assert Payment.query.count() == 0


def test_bank_transfer_needs_details(db, admin, make_invoice):
    inv = make_invoice()
    with pytest.raises(ValidationError):
        ledger.apply_payment(inv.id, 100, "bank_transfer", recorded_by_id=admin.id)
    payment = ledger.apply_payment(
        inv.id, 100, "bank_transfer",
        recorded_by_id=admin.id,
        transfer={"bank": "VCB", "transaction_no": "FT123"},
    )
    assert payment.transfer_ref == "FT123"


def test_unknown_invoice(db, admin):
    with pytest.raises(NotFoundError):
        ledger.apply_payment(9999, 100, "cash", recorded_by_id=admin.id)


def test_deleting_a_payment_restores_the_invoice(db, admin, make_invoice):
    inv = make_invoice(total=2_400_000)
    ledger.apply_payment(inv.id, 500_000, "cash", recorded_by_id=admin.id)
    before = _snapshot(inv)

    payment = ledger.apply_payment(inv.id, 700_000, "cash", recorded_by_id=admin.id)
    ledger.delete_payment(payment.id)

    assert _snapshot(inv) == before
    assert ledger.payments_total(inv.id) == inv.paid


def test_deleting_the_only_payment_returns_to_unpaid(db, admin, make_invoice):
    inv = make_invoice(total=900_000)
    payment = ledger.apply_payment(inv.id, 900_000, "cash", recorded_by_id=admin.id)
    ledger.delete_payment(payment.id)
    assert _snapshot(inv) == (0, 900_000, "unpaid")


def test_edit_moves_payment_between_invoices(db, admin, make_contract, make_invoice):
    contract = make_contract()
    today = date.today()
    first = make_invoice(contract=contract, total=1_000_000, month=1, year=today.year - 1)
    second = make_invoice(contract=contract, total=1_000_000, month=2, year=today.year - 1,
                          due_date=today + timedelta(days=5))

    payment = ledger.apply_payment(first.id, 600_000, "cash", recorded_by_id=admin.id)
    ledger.edit_payment(payment.id, invoice_id=second.id, amount=300_000, method="cash")

    assert first.paid == 0 and first.remaining == 1_000_000
    assert second.paid == 300_000 and second.status == "partially_paid"
    assert payment.invoice_id == second.id


def test_edit_checks_balance_after_reversal(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000)
    payment = ledger.apply_payment(inv.id, 800_000, "cash", recorded_by_id=admin.id)

    # 1,000,000 fits once the old 800,000 is reversed
    ledger.edit_payment(payment.id, invoice_id=inv.id, amount=1_000_000, method="cash")
    assert _snapshot(inv) == (1_000_000, 0, "paid")


def test_failed_edit_rolls_back(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000)
    payment = ledger.apply_payment(inv.id, 800_000, "cash", recorded_by_id=admin.id)

    with pytest.raises(ValidationError):
        ledger.edit_payment(payment.id, invoice_id=inv.id, amount=1_000_001, method="cash")

    db.session.refresh(inv)
    db.session.refresh(payment)
    assert _snapshot(inv) == (800_000, 200_000, "partially_paid")
    assert payment.amount == 800_000


def test_reconcile_reports_and_fixes(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000)
    ledger.apply_payment(inv.id, 250_000, "cash", recorded_by_id=admin.id)
    inv.paid = 999
    db.session.commit()

    assert ledger.reconcile_invoice(inv) == (999, 250_000)
    ledger.reconcile_invoice(inv, fix=True)
    db.session.commit()
    assert inv.paid == 250_000
    assert inv.remaining == 750_000


def test_payment_settles_against_the_given_day(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000, due_date=date(2090, 1, 1))
    assert inv.status == "unpaid"

    ledger.apply_payment(inv.id, 100_000, "cash", recorded_by_id=admin.id, today=date(2091, 1, 1))

    db.session.expire_all()
    assert _snapshot(inv) == (100_000, 900_000, "overdue")


def test_edit_and_delete_settle_against_the_given_day(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000, due_date=date(2090, 1, 1))
    payment = ledger.apply_payment(inv.id, 1_000_000, "cash", recorded_by_id=admin.id)
    assert inv.status == "paid"

    ledger.edit_payment(
        payment.id, invoice_id=inv.id, amount=400_000, method="cash", today=date(2089, 6, 1),
    )
    db.session.expire_all()
    assert _snapshot(inv) == (400_000, 600_000, "partially_paid")

    ledger.delete_payment(payment.id, today=date(2091, 1, 1))
    db.session.expire_all()
    assert _snapshot(inv) == (0, 1_000_000, "overdue")


def test_reconcile_fix_uses_the_given_day(db, admin, make_invoice):
    inv = make_invoice(total=1_000_000, due_date=date(2090, 1, 1))
    ledger.apply_payment(inv.id, 300_000, "cash", recorded_by_id=admin.id)
    inv.paid = 0
    db.session.commit()

    with reference_date(date(2091, 1, 1)):
        recorded, actual = ledger.reconcile_invoice(inv, fix=True, today=date(2091, 1, 1))
        db.session.commit()

    assert (recorded, actual) == (0, 300_000)
    db.session.expire_all()
    assert _snapshot(inv) == (300_000, 700_000, "overdue")
