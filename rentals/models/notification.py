# rentals/models/notification.py
from datetime import datetime

from rentals.extensions import db

NOTIFICATION_TYPES = ("general", "invoice", "incident", "contract", "other")


class Notification(db.Model):
    __tablename__ = "notification"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default="general")

    sender_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    building_id = db.Column(db.Integer, db.ForeignKey("building.id"))

    # tenant ids / room ids; read_by holds tenant ids that opened it
    recipients = db.Column(db.JSON, nullable=False, default=list)
    rooms = db.Column(db.JSON, nullable=False, default=list)
    read_by = db.Column(db.JSON, nullable=False, default=list)

    sent_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    sender = db.relationship("User")
    building = db.relationship("Building")

    def mark_read(self, tenant_id: int) -> bool:
        read = list(self.read_by or [])
        if tenant_id in read:
            return False
        read.append(tenant_id)
        # reassign so the JSON column is flagged dirty
        self.read_by = read
        return True

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "type": self.type,
            "sender_id": self.sender_id,
            "building_id": self.building_id,
            "recipients": list(self.recipients or []),
            "rooms": list(self.rooms or []),
            "read_by": list(self.read_by or []),
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
