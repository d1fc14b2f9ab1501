# rentals/api/rooms.py
from flask import request
from flask_login import login_required

from rentals.billing.status import refresh_room_status
from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import Building, Contract, Room
from rentals.schemas import RoomCreate, RoomUpdate, parse_payload
from rentals.utils.authz import require_owner
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


def _building_or_404(building_id) -> Building:
    building = db.session.get(Building, building_id)
    if building is None:
        raise NotFoundError("Building not found")
    return building


@api_bp.get("/phong")
@login_required
def list_rooms():
    q = Room.query
    if request.args.get("building_id", type=int):
        q = q.filter(Room.building_id == request.args.get("building_id", type=int))
    if request.args.get("status"):
        q = q.filter(Room.status == request.args["status"])
    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Room.code.ilike(f"%{search.upper()}%"))
    q = q.order_by(Room.code.asc())

    rooms, pagination = paginate(q)
    # status is a cache; bring the page up to date before returning it
    for room in rooms:
        refresh_room_status(room)
    db.session.commit()
    return ok([r.to_dict(with_building=True) for r in rooms], pagination=pagination)


@api_bp.post("/phong")
@login_required
def create_room():
    payload = parse_payload(RoomCreate)
    building = _building_or_404(payload.building_id)
    require_owner(building)
    if Room.query.filter_by(code=payload.code).first():
        raise ValidationError(f"Room code {payload.code} already exists")

    room = Room(**payload.model_dump())
    db.session.add(room)
    db.session.commit()
    return ok(room.to_dict(with_building=True), "Room created", 201)


@api_bp.get("/phong/<int:room_id>")
@login_required
def get_room(room_id):
    room = get_or_404(Room, room_id, "Room not found")
    refresh_room_status(room)
    db.session.commit()
    return ok(room.to_dict(with_building=True))


@api_bp.put("/phong/<int:room_id>")
@login_required
def update_room(room_id):
    room = get_or_404(Room, room_id, "Room not found")
    require_owner(room.building)
    changes = parse_payload(RoomUpdate).model_dump(exclude_unset=True)

    if changes.get("building_id") and changes["building_id"] != room.building_id:
        require_owner(_building_or_404(changes["building_id"]))
    code = changes.get("code")
    if code and code != room.code and Room.query.filter_by(code=code).first():
        raise ValidationError(f"Room code {code} already exists")

    for field, value in changes.items():
        if value is not None:
            setattr(room, field, value)
    # leaving maintenance hands the status back to the contracts
    if "status" in changes and changes["status"] != "maintenance":
        refresh_room_status(room)
    db.session.commit()
    return ok(room.to_dict(with_building=True), "Room updated")


@api_bp.delete("/phong/<int:room_id>")
@login_required
def delete_room(room_id):
    room = get_or_404(Room, room_id, "Room not found")
    require_owner(room.building)
    if Contract.query.filter_by(room_id=room.id, status="active").first():
        raise ValidationError("Cannot delete a room with an active contract")
    db.session.delete(room)
    db.session.commit()
    return ok(None, "Room deleted")
