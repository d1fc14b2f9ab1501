# rentals/api/tenant_portal.py
# Self-service for tenants: phone + password login, bearer token afterwards.
from datetime import date

from flask import current_app, request

from rentals.billing.lifecycle import OVERDUE, PARTIALLY_PAID, UNPAID
from rentals.billing.status import contracts_for_tenant
from rentals.errors import AuthenticationError
from rentals.extensions import db
from rentals.models import Invoice, Tenant
from rentals.schemas import TenantLogin, parse_payload
from rentals.utils.tokens import load_tenant_token, make_tenant_token

from . import api_bp, ok


def _bearer_tenant() -> Tenant:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise AuthenticationError()
    tenant_id = load_tenant_token(header[len("Bearer "):].strip())
    tenant = db.session.get(Tenant, tenant_id) if tenant_id else None
    if tenant is None:
        raise AuthenticationError("Invalid or expired token")
    return tenant


@api_bp.post("/auth/khach-thue/login")
def tenant_login():
    payload = parse_payload(TenantLogin)
    tenant = Tenant.query.filter_by(phone=payload.phone).first()
    if tenant is None:
        raise AuthenticationError("Invalid phone number or password")
    if not tenant.password_hash:
        raise AuthenticationError("Account not activated; ask the manager to set a password")
    if not tenant.check_password(payload.password):
        current_app.logger.info("tenant login failed for %s", payload.phone)
        raise AuthenticationError("Invalid phone number or password")

    return ok({"tenant": tenant.to_dict(), "token": make_tenant_token(tenant.id)}, "Logged in")


@api_bp.get("/auth/khach-thue/me")
def tenant_me():
    tenant = _bearer_tenant()
    today = date.today()

    current = next((c for c in contracts_for_tenant(tenant.id) if c.is_current(today)), None)
    contract = None
    if current is not None:
        contract = current.to_dict()
        contract["room"] = current.room.to_dict(with_building=True)

    unpaid = Invoice.query.filter(
        Invoice.tenant_id == tenant.id,
        Invoice.status.in_((UNPAID, PARTIALLY_PAID, OVERDUE)),
    ).count()
    latest = (
        Invoice.query.filter_by(tenant_id=tenant.id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .first()
    )
    return ok({
        "tenant": tenant.to_dict(),
        "current_contract": contract,
        "unpaid_invoices": unpaid,
        "latest_invoice": latest.to_dict() if latest else None,
    })
