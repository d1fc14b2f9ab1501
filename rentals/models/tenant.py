# rentals/models/tenant.py
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from rentals.extensions import db

TENANT_STATUSES = ("renting", "vacated", "never_rented")
GENDERS = ("male", "female", "other")


class Tenant(db.Model):
    __tablename__ = "tenant"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(100), nullable=False, index=True)
    phone = db.Column(db.String(11), unique=True, nullable=False)
    email = db.Column(db.String(320))
    national_id = db.Column(db.String(12), unique=True, nullable=False)
    birth_date = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(10), nullable=False)
    hometown = db.Column(db.String(200), nullable=False)
    occupation = db.Column(db.String(100))
    id_card_front = db.Column(db.String(500), default="")
    id_card_back = db.Column(db.String(500), default="")

    # set by staff; tenants without one cannot use the self-service login
    password_hash = db.Column(db.String(255))

    # cached; see rentals.billing.status
    status = db.Column(db.String(20), nullable=False, default="never_rented", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password, method="pbkdf2:sha256")

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "national_id": self.national_id,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "gender": self.gender,
            "hometown": self.hometown,
            "occupation": self.occupation,
            "id_card": {"front": self.id_card_front or "", "back": self.id_card_back or ""},
            "status": self.status,
            "has_login": bool(self.password_hash),
        }

    def __repr__(self):
        return f"<Tenant {self.full_name}>"
