# rentals/models/property.py
from datetime import datetime

from rentals.extensions import db

ROOM_STATUSES = ("vacant", "reserved", "occupied", "maintenance")

AMENITIES = (
    "air_conditioner", "water_heater", "fridge", "bed", "wardrobe", "desk",
    "chair", "tv", "wifi", "washing_machine", "kitchen", "pot", "dishes", "bowls",
)

SHARED_AMENITIES = (
    "wifi", "camera", "security_guard", "parking", "elevator",
    "drying_yard", "shared_toilet", "shared_kitchen",
)


class Building(db.Model):
    __tablename__ = "building"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    # {"house_no", "street", "ward", "district", "city"}
    address = db.Column(db.JSON, nullable=False, default=dict)
    description = db.Column(db.Text)
    images = db.Column(db.JSON, nullable=False, default=list)
    total_rooms = db.Column(db.Integer, nullable=False, default=0)
    shared_amenities = db.Column(db.JSON, nullable=False, default=list)

    # 👤 owner is the only non-admin allowed to change this building
    owner_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    owner = db.relationship("User", backref="buildings")

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address or {},
            "description": self.description,
            "images": list(self.images or []),
            "total_rooms": self.total_rooms,
            "shared_amenities": list(self.shared_amenities or []),
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Building {self.name}>"


class Room(db.Model):
    __tablename__ = "room"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    building_id = db.Column(db.Integer, db.ForeignKey("building.id"), nullable=False, index=True)
    floor = db.Column(db.Integer, nullable=False, default=0)
    area = db.Column(db.Float, nullable=False)
    rent = db.Column(db.BigInteger, nullable=False)
    deposit = db.Column(db.BigInteger, nullable=False, default=0)
    description = db.Column(db.Text)
    images = db.Column(db.JSON, nullable=False, default=list)
    amenities = db.Column(db.JSON, nullable=False, default=list)
    max_occupants = db.Column(db.Integer, nullable=False, default=1)

    # cached; see rentals.billing.status
    status = db.Column(db.String(20), nullable=False, default="vacant", index=True)

    building = db.relationship("Building", backref=db.backref("rooms", lazy="select"))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, with_building: bool = False):
        data = {
            "id": self.id,
            "code": self.code,
            "building_id": self.building_id,
            "floor": self.floor,
            "area": self.area,
            "rent": self.rent,
            "deposit": self.deposit,
            "description": self.description,
            "images": list(self.images or []),
            "amenities": list(self.amenities or []),
            "max_occupants": self.max_occupants,
            "status": self.status,
        }
        if with_building and self.building is not None:
            data["building"] = {"id": self.building.id, "name": self.building.name}
        return data

    def __repr__(self):
        return f"<Room {self.code}>"
