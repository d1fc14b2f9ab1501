# rentals/models/reading.py
from datetime import date, datetime

from rentals.extensions import db


class MeterReading(db.Model):
    """One electricity + water snapshot for a room in a billing month."""

    __tablename__ = "meter_reading"
    __table_args__ = (
        db.UniqueConstraint("room_id", "month", "year", name="uq_meter_reading_room_period"),
        db.Index("ix_meter_reading_period", "year", "month"),
    )

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("room.id"), nullable=False, index=True)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)

    electricity_old = db.Column(db.Integer, nullable=False)
    electricity_new = db.Column(db.Integer, nullable=False)
    electricity_usage = db.Column(db.Integer, nullable=False, default=0)
    water_old = db.Column(db.Integer, nullable=False)
    water_new = db.Column(db.Integer, nullable=False)
    water_usage = db.Column(db.Integer, nullable=False, default=0)

    electricity_photo = db.Column(db.String(500))
    water_photo = db.Column(db.String(500))

    recorded_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    recorded_on = db.Column(db.Date, nullable=False, default=date.today)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    room = db.relationship("Room", backref=db.backref("readings", lazy="select"))
    recorded_by = db.relationship("User")

    def compute_usage(self) -> None:
        self.electricity_usage = max(0, (self.electricity_new or 0) - (self.electricity_old or 0))
        self.water_usage = max(0, (self.water_new or 0) - (self.water_old or 0))

    def to_dict(self):
        return {
            "id": self.id,
            "room_id": self.room_id,
            "room_code": self.room.code if self.room else None,
            "month": self.month,
            "year": self.year,
            "electricity_old": self.electricity_old,
            "electricity_new": self.electricity_new,
            "electricity_usage": self.electricity_usage,
            "water_old": self.water_old,
            "water_new": self.water_new,
            "water_usage": self.water_usage,
            "electricity_photo": self.electricity_photo,
            "water_photo": self.water_photo,
            "recorded_by_id": self.recorded_by_id,
            "recorded_on": self.recorded_on.isoformat() if self.recorded_on else None,
        }
