# rentals/api/auto_invoice.py
from flask_login import login_required

from rentals.billing.auto_invoice import auto_invoice_preconditions, generate_monthly_invoices

from . import api_bp, ok


@api_bp.get("/auto-invoice")
@login_required
def auto_invoice_status():
    return ok(auto_invoice_preconditions())


@api_bp.post("/auto-invoice")
@login_required
def auto_invoice_run():
    result = generate_monthly_invoices()
    return ok(result.to_dict(), f"Created {result.created_count} invoice(s) automatically")
