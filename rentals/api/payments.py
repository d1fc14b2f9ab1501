# rentals/api/payments.py
from flask import request
from flask_login import current_user, login_required

from rentals.billing import ledger
from rentals.models import Payment
from rentals.schemas import PaymentCreate, PaymentUpdate, parse_payload
from rentals.utils.pagination import paginate

from . import api_bp, ok


def _ledger_kwargs(payload):
    return {
        "transfer": payload.transfer.model_dump() if payload.transfer else None,
        "paid_on": payload.paid_on,
        "note": payload.note,
        "receipt_url": payload.receipt_url,
    }


@api_bp.get("/thanh-toan")
@login_required
def list_payments():
    q = Payment.query
    if request.args.get("invoice_id", type=int):
        q = q.filter(Payment.invoice_id == request.args.get("invoice_id", type=int))
    if request.args.get("method"):
        q = q.filter(Payment.method == request.args["method"])
    q = q.order_by(Payment.paid_on.desc())
    items, pagination = paginate(q, lambda p: p.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/thanh-toan")
@login_required
def create_payment():
    payload = parse_payload(PaymentCreate)
    payment = ledger.apply_payment(
        payload.invoice_id,
        payload.amount,
        payload.method,
        recorded_by_id=current_user.id,
        **_ledger_kwargs(payload),
    )
    data = payment.to_dict()
    data["invoice"] = payment.invoice.to_dict()
    return ok(data, "Payment recorded", 201)


@api_bp.put("/thanh-toan/<int:payment_id>")
@login_required
def update_payment(payment_id):
    payload = parse_payload(PaymentUpdate)
    payment = ledger.edit_payment(
        payment_id,
        invoice_id=payload.invoice_id,
        amount=payload.amount,
        method=payload.method,
        **_ledger_kwargs(payload),
    )
    data = payment.to_dict()
    data["invoice"] = payment.invoice.to_dict()
    return ok(data, "Payment updated")


@api_bp.delete("/thanh-toan/<int:payment_id>")
@login_required
def delete_payment(payment_id):
    invoice = ledger.delete_payment(payment_id)
    return ok({"invoice": invoice.to_dict() if invoice else None}, "Payment deleted")
