# rentals/api/incidents.py
from flask import request
from flask_login import login_required

from rentals.errors import NotFoundError
from rentals.extensions import db
from rentals.models import Incident, Room, Tenant, User
from rentals.schemas import IncidentCreate, IncidentUpdate, parse_payload
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


@api_bp.get("/su-co")
@login_required
def list_incidents():
    q = Incident.query
    for arg in ("status", "priority", "type"):
        if request.args.get(arg):
            q = q.filter(getattr(Incident, arg) == request.args[arg])
    if request.args.get("room_id", type=int):
        q = q.filter(Incident.room_id == request.args.get("room_id", type=int))
    q = q.order_by(Incident.reported_at.desc())
    items, pagination = paginate(q, lambda i: i.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/su-co")
@login_required
def create_incident():
    payload = parse_payload(IncidentCreate)
    if db.session.get(Room, payload.room_id) is None:
        raise NotFoundError("Room not found")
    if db.session.get(Tenant, payload.tenant_id) is None:
        raise NotFoundError("Tenant not found")

    incident = Incident(**payload.model_dump())
    db.session.add(incident)
    db.session.commit()
    return ok(incident.to_dict(), "Incident reported", 201)


@api_bp.get("/su-co/<int:incident_id>")
@login_required
def get_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident not found")
    return ok(incident.to_dict())


@api_bp.put("/su-co/<int:incident_id>")
@login_required
def update_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident not found")
    changes = parse_payload(IncidentUpdate).model_dump(exclude_unset=True)
    if changes.get("handler_id") and db.session.get(User, changes["handler_id"]) is None:
        raise NotFoundError("Handler not found")

    for field, value in changes.items():
        if value is None and field not in ("handler_id", "handler_note"):
            continue
        setattr(incident, field, value)
    db.session.commit()
    return ok(incident.to_dict(), "Incident updated")


@api_bp.delete("/su-co/<int:incident_id>")
@login_required
def delete_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident not found")
    db.session.delete(incident)
    db.session.commit()
    return ok(None, "Incident deleted")
