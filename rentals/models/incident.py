# rentals/models/incident.py
from datetime import datetime

from sqlalchemy import event

from rentals.extensions import db

INCIDENT_TYPES = ("utilities", "furniture", "cleaning", "security", "other")
INCIDENT_PRIORITIES = ("low", "medium", "high", "urgent")
INCIDENT_STATUSES = ("new", "in_progress", "done", "cancelled")
OPEN_INCIDENT_STATUSES = ("new", "in_progress")


class Incident(db.Model):
    __tablename__ = "incident"

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("room.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenant.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    type = db.Column(db.String(20), nullable=False)
    priority = db.Column(db.String(20), nullable=False, default="medium")
    status = db.Column(db.String(20), nullable=False, default="new", index=True)

    handler_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    handler_note = db.Column(db.Text)

    reported_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    started_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)

    room = db.relationship("Room")
    tenant = db.relationship("Tenant")
    handler = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "room_id": self.room_id,
            "room_code": self.room.code if self.room else None,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.full_name if self.tenant else None,
            "title": self.title,
            "description": self.description,
            "images": list(self.images or []),
            "type": self.type,
            "priority": self.priority,
            "status": self.status,
            "handler_id": self.handler_id,
            "handler_note": self.handler_note,
            "reported_at": self.reported_at.isoformat() if self.reported_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@event.listens_for(Incident, "before_insert")
@event.listens_for(Incident, "before_update")
def _stamp_incident(mapper, connection, target):
    now = datetime.utcnow()
    if target.status == "in_progress" and target.started_at is None:
        target.started_at = now
    if target.status == "done" and target.completed_at is None:
        target.completed_at = now
