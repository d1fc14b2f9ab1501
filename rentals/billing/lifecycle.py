# rentals/billing/lifecycle.py
from datetime import date, datetime

UNPAID = "unpaid"
PARTIALLY_PAID = "partially_paid"
PAID = "paid"
OVERDUE = "overdue"

INVOICE_STATUSES = (UNPAID, PARTIALLY_PAID, PAID, OVERDUE)


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def derive_status(total: int, paid: int, due_date, today=None):
    """
    Return ``(remaining, status)`` for an invoice.

    Settled invoices are never overdue; anything else with money left after
    the due date is.
    """
    today = _as_date(today) or date.today()
    due_date = _as_date(due_date)

    remaining = int(total or 0) - int(paid or 0)

    if remaining <= 0:
        status = PAID
    elif (paid or 0) > 0:
        status = PARTIALLY_PAID
    else:
        status = UNPAID

    if status != PAID and due_date is not None and due_date < today and remaining > 0:
        status = OVERDUE

    return remaining, status


def settle(invoice, today=None):
    """Write remaining/status onto an Invoice-like object in place."""
    invoice.remaining, invoice.status = derive_status(
        invoice.total, invoice.paid, invoice.due_date, today
    )
    return invoice
