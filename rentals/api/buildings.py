# rentals/api/buildings.py
from flask import request
from flask_login import current_user, login_required

from rentals.errors import ValidationError
from rentals.extensions import db
from rentals.models import Building, Room
from rentals.schemas import BuildingCreate, BuildingUpdate, parse_payload
from rentals.utils.authz import require_owner
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


@api_bp.get("/toa-nha")
@login_required
def list_buildings():
    q = Building.query
    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Building.name.ilike(f"%{search}%"))
    q = q.order_by(Building.created_at.desc())
    items, pagination = paginate(q, lambda b: b.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/toa-nha")
@login_required
def create_building():
    payload = parse_payload(BuildingCreate)
    building = Building(
        name=payload.name,
        address=payload.address.model_dump(),
        description=payload.description,
        images=payload.images,
        total_rooms=payload.total_rooms,
        shared_amenities=payload.shared_amenities,
        owner_id=current_user.id,
    )
    db.session.add(building)
    db.session.commit()
    return ok(building.to_dict(), "Building created", 201)


@api_bp.get("/toa-nha/<int:building_id>")
@login_required
def get_building(building_id):
    building = get_or_404(Building, building_id, "Building not found")
    data = building.to_dict()
    data["rooms"] = [r.to_dict() for r in building.rooms]
    return ok(data)


@api_bp.put("/toa-nha/<int:building_id>")
@login_required
def update_building(building_id):
    building = get_or_404(Building, building_id, "Building not found")
    require_owner(building)
    payload = parse_payload(BuildingUpdate)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in ("name", "address"):
            continue
        setattr(building, field, value)
    db.session.commit()
    return ok(building.to_dict(), "Building updated")


@api_bp.delete("/toa-nha/<int:building_id>")
@login_required
def delete_building(building_id):
    building = get_or_404(Building, building_id, "Building not found")
    require_owner(building)
    if Room.query.filter_by(building_id=building.id).count():
        raise ValidationError("Cannot delete a building that still has rooms")
    db.session.delete(building)
    db.session.commit()
    return ok(None, "Building deleted")
