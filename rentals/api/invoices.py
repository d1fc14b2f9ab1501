# rentals/api/invoices.py
from datetime import date

from flask import request
from flask_login import login_required

from rentals.billing import invoices as invoice_service
from rentals.errors import ValidationError
from rentals.models import Contract, Invoice
from rentals.schemas import InvoiceCreate, InvoiceUpdate, parse_payload
from rentals.utils.pagination import paginate
from rentals.utils.tokens import make_invoice_token

from . import api_bp, get_or_404, ok


@api_bp.get("/hoa-don")
@login_required
def list_invoices():
    q = Invoice.query
    for arg in ("contract_id", "room_id", "tenant_id", "month", "year"):
        value = request.args.get(arg, type=int)
        if value:
            q = q.filter(getattr(Invoice, arg) == value)
    if request.args.get("status"):
        q = q.filter(Invoice.status == request.args["status"])
    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Invoice.code.ilike(f"%{search.upper()}%"))
    q = q.order_by(Invoice.year.desc(), Invoice.month.desc(), Invoice.id.desc())
    items, pagination = paginate(q, lambda i: i.to_dict())
    return ok(items, pagination=pagination)


@api_bp.get("/hoa-don/<int:invoice_id>")
@login_required
def get_invoice(invoice_id):
    invoice = get_or_404(Invoice, invoice_id, "Invoice not found")
    data = invoice.to_dict(with_payments=True)
    data["public_token"] = make_invoice_token(invoice.id)
    return ok(data)


@api_bp.get("/hoa-don/latest-reading")
@login_required
def latest_reading():
    contract_id = request.args.get("contract_id", type=int)
    if not contract_id:
        raise ValidationError("contract_id is required")
    month = request.args.get("month", 1, type=int)
    year = request.args.get("year", date.today().year, type=int)
    contract = get_or_404(Contract, contract_id, "Contract not found")

    data = invoice_service.latest_reading(contract, month, year)
    if data["is_first_invoice"]:
        message = "Starting readings taken from the contract"
    else:
        message = f"Starting readings taken from invoice {data['last_invoice_period']}"
    return ok(data, message)


@api_bp.post("/hoa-don")
@login_required
def create_invoice():
    payload = parse_payload(InvoiceCreate)
    invoice = invoice_service.create_invoice(payload.model_dump())
    return ok(invoice.to_dict(), "Invoice created", 201)


@api_bp.put("/hoa-don")
@login_required
def update_invoice():
    payload = parse_payload(InvoiceUpdate)
    invoice = get_or_404(Invoice, payload.id, "Invoice not found")
    invoice = invoice_service.update_invoice(invoice, payload.model_dump(exclude_unset=True))
    return ok(invoice.to_dict(), "Invoice updated")


@api_bp.delete("/hoa-don")
@login_required
def delete_invoice():
    invoice_id = request.args.get("id", type=int)
    if not invoice_id:
        raise ValidationError("id is required")
    invoice = get_or_404(Invoice, invoice_id, "Invoice not found")
    invoice_service.delete_invoice(invoice)
    return ok(None, "Invoice deleted")
