# rentals/api/contracts.py
from flask import request
from flask_login import login_required

from rentals.billing.status import contract_targets, refresh_targets
from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import Contract, Invoice, Room, Tenant
from rentals.schemas import ContractCreate, ContractUpdate, parse_payload
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


def _load_tenants(tenant_ids):
    tenants = Tenant.query.filter(Tenant.id.in_(tenant_ids)).all()
    if len(tenants) != len(set(tenant_ids)):
        raise NotFoundError("Tenant not found")
    return tenants


def _check_overlap(room_id, start_date, end_date, exclude_id=None):
    """One active contract per room for any given day."""
    q = Contract.query.filter(
        Contract.room_id == room_id,
        Contract.status == "active",
        Contract.start_date <= end_date,
        Contract.end_date >= start_date,
    )
    if exclude_id:
        q = q.filter(Contract.id != exclude_id)
    clash = q.first()
    if clash:
        raise ValidationError(f"Room already has an active contract ({clash.code}) in this period")


@api_bp.get("/hop-dong")
@login_required
def list_contracts():
    q = Contract.query
    if request.args.get("status"):
        q = q.filter(Contract.status == request.args["status"])
    if request.args.get("room_id", type=int):
        q = q.filter(Contract.room_id == request.args.get("room_id", type=int))
    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Contract.code.ilike(f"%{search.upper()}%"))
    q = q.order_by(Contract.start_date.desc())
    items, pagination = paginate(q, lambda c: c.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/hop-dong")
@login_required
def create_contract():
    payload = parse_payload(ContractCreate)
    if Contract.query.filter_by(code=payload.code).first():
        raise ValidationError(f"Contract code {payload.code} already exists")
    if db.session.get(Room, payload.room_id) is None:
        raise NotFoundError("Room not found")
    tenants = _load_tenants(payload.tenant_ids)
    if payload.status == "active":
        _check_overlap(payload.room_id, payload.start_date, payload.end_date)

    data = payload.model_dump(exclude={"tenant_ids"})
    contract = Contract(**data)
    contract.tenants = tenants
    db.session.add(contract)
    db.session.flush()

    room_ids, tenant_ids = contract_targets(contract)
    refresh_targets(room_ids, tenant_ids)
    db.session.commit()
    return ok(contract.to_dict(), "Contract created", 201)


@api_bp.get("/hop-dong/<int:contract_id>")
@login_required
def get_contract(contract_id):
    contract = get_or_404(Contract, contract_id, "Contract not found")
    data = contract.to_dict()
    data["tenants"] = [t.to_dict() for t in contract.tenants]
    return ok(data)


@api_bp.put("/hop-dong/<int:contract_id>")
@login_required
def update_contract(contract_id):
    contract = get_or_404(Contract, contract_id, "Contract not found")
    changes = parse_payload(ContractUpdate).model_dump(exclude_unset=True)
    old_rooms, old_tenants = contract_targets(contract)

    code = (changes.get("code") or "").strip().upper()
    if code and code != contract.code:
        if Contract.query.filter(Contract.code == code, Contract.id != contract.id).first():
            raise ValidationError(f"Contract code {code} already exists")
        changes["code"] = code

    room_id = changes.get("room_id") or contract.room_id
    if room_id != contract.room_id and db.session.get(Room, room_id) is None:
        raise NotFoundError("Room not found")

    tenant_ids = changes.pop("tenant_ids", None) or contract.tenant_ids
    representative_id = changes.get("representative_id") or contract.representative_id
    start_date = changes.get("start_date") or contract.start_date
    end_date = changes.get("end_date") or contract.end_date
    status = changes.get("status") or contract.status

    if end_date <= start_date:
        raise ValidationError("End date must be after start date")
    if representative_id not in tenant_ids:
        raise ValidationError("Representative must be one of the contract's tenants")
    if status == "active":
        _check_overlap(room_id, start_date, end_date, exclude_id=contract.id)

    tenants = _load_tenants(tenant_ids)
    for field, value in changes.items():
        if value is None and field not in ("contract_file",):
            continue
        setattr(contract, field, value)
    contract.tenants = tenants
    db.session.flush()

    new_rooms, new_tenants = contract_targets(contract)
    refresh_targets(old_rooms | new_rooms, old_tenants | new_tenants)
    db.session.commit()
    return ok(contract.to_dict(), "Contract updated")


@api_bp.delete("/hop-dong/<int:contract_id>")
@login_required
def delete_contract(contract_id):
    contract = get_or_404(Contract, contract_id, "Contract not found")
    if Invoice.query.filter_by(contract_id=contract.id).first():
        raise ValidationError("Cannot delete a contract that has invoices")

    room_ids, tenant_ids = contract_targets(contract)
    db.session.delete(contract)
    db.session.flush()
    refresh_targets(room_ids, tenant_ids)
    db.session.commit()
    return ok(None, "Contract deleted")
