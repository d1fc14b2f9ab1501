# rentals/api/tenants.py
from flask import request
from flask_login import login_required
from sqlalchemy import or_

from rentals.billing.status import contracts_for_tenant, refresh_tenant_status
from rentals.errors import ValidationError
from rentals.extensions import db
from rentals.models import Tenant
from rentals.schemas import TenantCreate, TenantUpdate, parse_payload
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


def _check_unique(phone=None, national_id=None, exclude_id=None):
    if phone:
        q = Tenant.query.filter(Tenant.phone == phone)
        if exclude_id:
            q = q.filter(Tenant.id != exclude_id)
        if q.first():
            raise ValidationError("Phone number is already registered")
    if national_id:
        q = Tenant.query.filter(Tenant.national_id == national_id)
        if exclude_id:
            q = q.filter(Tenant.id != exclude_id)
        if q.first():
            raise ValidationError("National ID is already registered")


@api_bp.get("/khach-thue")
@login_required
def list_tenants():
    q = Tenant.query
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Tenant.full_name.ilike(like), Tenant.phone.ilike(like), Tenant.national_id.ilike(like)))
    if request.args.get("status"):
        q = q.filter(Tenant.status == request.args["status"])
    q = q.order_by(Tenant.created_at.desc())

    tenants, pagination = paginate(q)
    for tenant in tenants:
        refresh_tenant_status(tenant)
    db.session.commit()
    return ok([t.to_dict() for t in tenants], pagination=pagination)


@api_bp.post("/khach-thue")
@login_required
def create_tenant():
    payload = parse_payload(TenantCreate)
    _check_unique(payload.phone, payload.national_id)

    data = payload.model_dump(exclude={"id_card", "password"})
    tenant = Tenant(
        **data,
        id_card_front=payload.id_card.front,
        id_card_back=payload.id_card.back,
        status="never_rented",
    )
    if payload.password:
        tenant.set_password(payload.password)
    db.session.add(tenant)
    db.session.commit()
    return ok(tenant.to_dict(), "Tenant created", 201)


@api_bp.get("/khach-thue/<int:tenant_id>")
@login_required
def get_tenant(tenant_id):
    tenant = get_or_404(Tenant, tenant_id, "Tenant not found")
    refresh_tenant_status(tenant)
    db.session.commit()
    data = tenant.to_dict()
    data["contracts"] = [c.to_dict() for c in contracts_for_tenant(tenant.id)]
    return ok(data)


@api_bp.put("/khach-thue/<int:tenant_id>")
@login_required
def update_tenant(tenant_id):
    tenant = get_or_404(Tenant, tenant_id, "Tenant not found")
    changes = parse_payload(TenantUpdate).model_dump(exclude_unset=True)
    _check_unique(changes.get("phone"), changes.get("national_id"), exclude_id=tenant.id)

    password = changes.pop("password", None)
    if password:
        tenant.set_password(password)
    id_card = changes.pop("id_card", None)
    if id_card is not None:
        tenant.id_card_front = id_card.get("front", "")
        tenant.id_card_back = id_card.get("back", "")
    for field, value in changes.items():
        if value is None and field not in ("email", "occupation"):
            continue
        setattr(tenant, field, value)
    db.session.commit()
    return ok(tenant.to_dict(), "Tenant updated")


@api_bp.delete("/khach-thue/<int:tenant_id>")
@login_required
def delete_tenant(tenant_id):
    tenant = get_or_404(Tenant, tenant_id, "Tenant not found")
    if contracts_for_tenant(tenant.id):
        raise ValidationError("Cannot delete a tenant referenced by a contract")
    db.session.delete(tenant)
    db.session.commit()
    return ok(None, "Tenant deleted")
