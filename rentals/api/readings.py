# rentals/api/readings.py
from flask import request
from flask_login import current_user, login_required

from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import MeterReading, Room
from rentals.schemas import MeterReadingCreate, MeterReadingUpdate, parse_payload
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


def _check_period_free(room_id, month, year, exclude_id=None):
    q = MeterReading.query.filter_by(room_id=room_id, month=month, year=year)
    if exclude_id:
        q = q.filter(MeterReading.id != exclude_id)
    if q.first():
        raise ValidationError(f"A meter reading for {month}/{year} already exists for this room")


@api_bp.get("/chi-so-dien-nuoc")
@login_required
def list_readings():
    q = MeterReading.query
    for arg in ("room_id", "month", "year"):
        value = request.args.get(arg, type=int)
        if value:
            q = q.filter(getattr(MeterReading, arg) == value)
    q = q.order_by(MeterReading.year.desc(), MeterReading.month.desc())
    items, pagination = paginate(q, lambda r: r.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/chi-so-dien-nuoc")
@login_required
def create_reading():
    payload = parse_payload(MeterReadingCreate)
    if db.session.get(Room, payload.room_id) is None:
        raise NotFoundError("Room not found")
    _check_period_free(payload.room_id, payload.month, payload.year)

    data = payload.model_dump()
    if data.get("recorded_on") is None:
        data.pop("recorded_on")
    reading = MeterReading(**data, recorded_by_id=current_user.id)
    reading.compute_usage()
    db.session.add(reading)
    db.session.commit()
    return ok(reading.to_dict(), "Meter reading recorded", 201)


@api_bp.get("/chi-so-dien-nuoc/<int:reading_id>")
@login_required
def get_reading(reading_id):
    reading = get_or_404(MeterReading, reading_id, "Meter reading not found")
    return ok(reading.to_dict())


@api_bp.put("/chi-so-dien-nuoc/<int:reading_id>")
@login_required
def update_reading(reading_id):
    reading = get_or_404(MeterReading, reading_id, "Meter reading not found")
    changes = parse_payload(MeterReadingUpdate).model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k.endswith("_photo")}

    merged = {
        "electricity_old": reading.electricity_old,
        "electricity_new": reading.electricity_new,
        "water_old": reading.water_old,
        "water_new": reading.water_new,
    }
    merged.update({k: v for k, v in changes.items() if k in merged})
    if merged["electricity_new"] < merged["electricity_old"]:
        raise ValidationError("New electricity reading cannot be lower than the old reading")
    if merged["water_new"] < merged["water_old"]:
        raise ValidationError("New water reading cannot be lower than the old reading")

    month = changes.get("month", reading.month)
    year = changes.get("year", reading.year)
    if (month, year) != (reading.month, reading.year):
        _check_period_free(reading.room_id, month, year, exclude_id=reading.id)

    for field, value in changes.items():
        setattr(reading, field, value)
    reading.compute_usage()
    db.session.commit()
    return ok(reading.to_dict(), "Meter reading updated")


@api_bp.delete("/chi-so-dien-nuoc/<int:reading_id>")
@login_required
def delete_reading(reading_id):
    reading = get_or_404(MeterReading, reading_id, "Meter reading not found")
    db.session.delete(reading)
    db.session.commit()
    return ok(None, "Meter reading deleted")
