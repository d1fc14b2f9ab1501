# rentals/billing/ledger.py
"""
Payment ledger.

Every change to a Payment row and to the matching ``Invoice.paid`` happens
in one session transaction, so the invoice balance always equals the sum of
its payments. Any failure rolls both rows back.
"""
from datetime import datetime

from flask import current_app
from sqlalchemy import func

from rentals.billing.lifecycle import settle
from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import Invoice, Payment
from rentals.models.billing import PAYMENT_METHODS, reference_date


def _get_invoice(invoice_id) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def _get_payment(payment_id) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def _check_payment(invoice: Invoice, amount: int, method: str, transfer) -> None:
    if amount is None or int(amount) < 1:
        raise ValidationError("Payment amount must be at least 1")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method: {method}")
    if method == "bank_transfer" and not (transfer and transfer.get("bank") and transfer.get("transaction_no")):
        raise ValidationError("Bank transfer details are required for bank transfers")
    if int(amount) > (invoice.remaining or 0):
        raise ValidationError("Payment amount cannot exceed the invoice's remaining balance")


def _credit(invoice: Invoice, amount: int, today=None) -> None:
    invoice.paid = (invoice.paid or 0) + int(amount)
    settle(invoice, today)


def _debit(invoice: Invoice, amount: int, today=None) -> None:
    invoice.paid = (invoice.paid or 0) - int(amount)
    settle(invoice, today)


def apply_payment(
    invoice_id,
    amount: int,
    method: str,
    *,
    recorded_by_id: int,
    transfer: dict = None,
    paid_on: datetime = None,
    note: str = None,
    receipt_url: str = None,
    today=None,
) -> Payment:
    invoice = _get_invoice(invoice_id)
    # balance may be stale if the due date passed since the last write
    settle(invoice, today)
    _check_payment(invoice, amount, method, transfer)

    payment = Payment(
        invoice_id=invoice.id,
        amount=int(amount),
        method=method,
        transfer_bank=(transfer or {}).get("bank") if method == "bank_transfer" else None,
        transfer_ref=(transfer or {}).get("transaction_no") if method == "bank_transfer" else None,
        paid_on=paid_on or datetime.utcnow(),
        recorded_by_id=recorded_by_id,
        note=note,
        receipt_url=receipt_url,
    )
    with reference_date(today):
        try:
            db.session.add(payment)
            _credit(invoice, amount, today)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    current_app.logger.info(
        "payment %s of %s on invoice %s (%s, remaining %s)",
        payment.id, payment.amount, invoice.code, invoice.status, invoice.remaining,
    )
    return payment


def edit_payment(
    payment_id,
    *,
    invoice_id,
    amount: int,
    method: str,
    transfer: dict = None,
    paid_on: datetime = None,
    note: str = None,
    receipt_url: str = None,
    today=None,
) -> Payment:
    """Reverse the old amount, then apply the new one to the (maybe different) invoice."""
    payment = _get_payment(payment_id)
    target = _get_invoice(invoice_id)

    with reference_date(today):
        try:
            old_invoice = payment.invoice
            if old_invoice is not None:
                _debit(old_invoice, payment.amount, today)
            settle(target, today)

            _check_payment(target, amount, method, transfer)

            payment.invoice = target
            payment.amount = int(amount)
            payment.method = method
            payment.transfer_bank = (transfer or {}).get("bank") if method == "bank_transfer" else None
            payment.transfer_ref = (transfer or {}).get("transaction_no") if method == "bank_transfer" else None
            payment.paid_on = paid_on or datetime.utcnow()
            payment.note = note
            payment.receipt_url = receipt_url

            _credit(target, amount, today)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    return payment


def delete_payment(payment_id, today=None) -> Invoice:
    """Remove a payment and give its amount back to the invoice."""
    payment = _get_payment(payment_id)
    invoice = payment.invoice
    with reference_date(today):
        try:
            if invoice is not None:
                _debit(invoice, payment.amount, today)
                invoice.payments.remove(payment)
            db.session.delete(payment)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
    return invoice


def payments_total(invoice_id) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.invoice_id == invoice_id)
        .scalar()
    )
    return int(total or 0)


def reconcile_invoice(invoice: Invoice, fix: bool = False, today=None):
    """
    Compare ``invoice.paid`` with the sum of its payments.

    Returns ``(recorded, actual)``. With ``fix`` the recorded value is
    overwritten; the caller commits, inside ``reference_date(today)`` when
    ``today`` is not the real date.
    """
    actual = payments_total(invoice.id)
    recorded = invoice.paid or 0
    if fix and recorded != actual:
        invoice.paid = actual
        settle(invoice, today)
    return recorded, actual
