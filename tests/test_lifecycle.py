from datetime import date, timedelta
from types import SimpleNamespace

from rentals.billing.lifecycle import derive_status, settle

TODAY = date(2025, 3, 15)


def test_past_due_with_nothing_paid_is_overdue():
    assert derive_status(2_400_000, 0, TODAY - timedelta(days=1), TODAY) == (2_400_000, "overdue")


def test_fully_paid_is_never_overdue():
    assert derive_status(2_400_000, 2_400_000, TODAY - timedelta(days=30), TODAY) == (0, "paid")


def test_partial_payment_before_due_date():
    assert derive_status(2_400_000, 400_000, TODAY + timedelta(days=3), TODAY) == (2_000_000, "partially_paid")


def test_partial_payment_after_due_date_is_overdue():
    assert derive_status(2_400_000, 400_000, TODAY - timedelta(days=3), TODAY) == (2_000_000, "overdue")


def test_due_today_is_not_overdue():
    assert derive_status(100, 0, TODAY, TODAY) == (100, "unpaid")


def test_zero_total_is_paid():
    assert derive_status(0, 0, TODAY - timedelta(days=10), TODAY) == (0, "paid")


def test_derivation_is_idempotent():
    inv = SimpleNamespace(total=2_400_000, paid=1_000, due_date=TODAY - timedelta(days=2), remaining=None, status=None)
    settle(inv, TODAY)
    first = (inv.remaining, inv.status)
    settle(inv, TODAY)
    assert (inv.remaining, inv.status) == first == (2_399_000, "overdue")
