# rentals/billing/status.py
from datetime import date

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from rentals.extensions import db
from rentals.models import Contract, Room, Tenant, contract_tenant

MAINTENANCE = "maintenance"


def room_status_for(contracts, today=None, current=None) -> str:
    """occupied > reserved > vacant, computed from the room's contracts."""
    today = today or date.today()
    if current == MAINTENANCE:
        return MAINTENANCE

    active = [c for c in contracts if c.status == "active"]
    if any(c.start_date <= today <= c.end_date for c in active):
        return "occupied"
    if any(c.start_date > today for c in active):
        return "reserved"
    return "vacant"


def tenant_status_for(contracts, today=None) -> str:
    today = today or date.today()
    contracts = list(contracts)
    if any(c.status == "active" and c.start_date <= today <= c.end_date for c in contracts):
        return "renting"
    if contracts:
        return "vacated"
    return "never_rented"


def contracts_for_room(room_id: int):
    return Contract.query.filter_by(room_id=room_id).all()


def contracts_for_tenant(tenant_id: int):
    linked = db.session.query(contract_tenant.c.contract_id).filter(
        contract_tenant.c.tenant_id == tenant_id
    )
    return Contract.query.filter(
        or_(Contract.representative_id == tenant_id, Contract.id.in_(linked))
    ).all()


def refresh_room_status(room: Room, today=None) -> str:
    """Recompute and store ``room.status``; lookup failures fall back to vacant."""
    try:
        status = room_status_for(contracts_for_room(room.id), today, current=room.status)
    except SQLAlchemyError:
        current_app.logger.warning("room status refresh failed for room %s", room.id, exc_info=True)
        status = MAINTENANCE if room.status == MAINTENANCE else "vacant"
    if room.status != status:
        room.status = status
    return status


def refresh_tenant_status(tenant: Tenant, today=None) -> str:
    try:
        status = tenant_status_for(contracts_for_tenant(tenant.id), today)
    except SQLAlchemyError:
        current_app.logger.warning("tenant status refresh failed for tenant %s", tenant.id, exc_info=True)
        status = "never_rented"
    if tenant.status != status:
        tenant.status = status
    return status


def refresh_targets(room_ids, tenant_ids, today=None) -> None:
    """Refresh the given rooms and tenants; call after the contract change is flushed."""
    for room_id in set(room_ids):
        room = db.session.get(Room, room_id)
        if room is not None:
            refresh_room_status(room, today)
    tenant_ids = set(tenant_ids)
    if tenant_ids:
        for tenant in Tenant.query.filter(Tenant.id.in_(tenant_ids)).all():
            refresh_tenant_status(tenant, today)


def contract_targets(contract: Contract):
    """(room ids, tenant ids) whose cached status depends on this contract."""
    tenant_ids = set(contract.tenant_ids)
    tenant_ids.add(contract.representative_id)
    return {contract.room_id}, tenant_ids


def refresh_for_contract(contract: Contract, today=None) -> None:
    room_ids, tenant_ids = contract_targets(contract)
    refresh_targets(room_ids, tenant_ids, today)


def refresh_all(today=None) -> dict:
    rooms = Room.query.all()
    tenants = Tenant.query.all()
    for room in rooms:
        refresh_room_status(room, today)
    for tenant in tenants:
        refresh_tenant_status(tenant, today)
    return {"rooms": len(rooms), "tenants": len(tenants)}
