# rentals/api/public.py
# Read-only listings for the public site; no login.
from flask import request
from sqlalchemy import func, or_

from rentals.errors import NotFoundError
from rentals.extensions import db
from rentals.models import Building, Invoice, Room
from rentals.utils.pagination import paginate
from rentals.utils.tokens import load_invoice_token

from . import api_bp, ok


@api_bp.get("/phong-public")
def public_rooms():
    # only rooms that are vacant or have photos
    q = Room.query.filter(or_(Room.status == "vacant", func.json_array_length(Room.images) > 0))
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Room.code.ilike(like), Room.description.ilike(like)))
    building_id = request.args.get("building_id", type=int)
    if building_id:
        q = q.filter(Room.building_id == building_id)
    status = request.args.get("status")
    if status and status != "all":
        q = q.filter(Room.status == status)

    items, pagination = paginate(q.order_by(Room.code), lambda r: r.to_dict(with_building=True), default_limit=20)
    return ok(items, pagination=pagination)


@api_bp.get("/toa-nha-public")
def public_buildings():
    q = Building.query
    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Building.name.ilike(f"%{search}%"))

    def _public(building):
        data = building.to_dict()
        data.pop("owner_id", None)
        data["vacant_rooms"] = Room.query.filter_by(building_id=building.id, status="vacant").count()
        return data

    items, pagination = paginate(q.order_by(Building.name), _public, default_limit=50)
    return ok(items, pagination=pagination)


@api_bp.get("/hoa-don-public/<token>")
def public_invoice(token):
    invoice_id = load_invoice_token(token)
    invoice = db.session.get(Invoice, invoice_id) if invoice_id else None
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return ok(invoice.to_dict(with_payments=True))
