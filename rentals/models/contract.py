# rentals/models/contract.py
from datetime import datetime

from rentals.extensions import db

CONTRACT_STATUSES = ("active", "expired", "cancelled")
PAYMENT_CYCLES = ("monthly", "quarterly", "yearly")


contract_tenant = db.Table(
    "contract_tenant",
    db.Column("contract_id", db.Integer, db.ForeignKey("contract.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tenant_id", db.Integer, db.ForeignKey("tenant.id", ondelete="CASCADE"), primary_key=True),
)


class Contract(db.Model):
    __tablename__ = "contract"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey("room.id"), nullable=False, index=True)
    representative_id = db.Column(db.Integer, db.ForeignKey("tenant.id"), nullable=False, index=True)

    # 📅 lease period
    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=False, index=True)

    rent = db.Column(db.BigInteger, nullable=False)
    deposit = db.Column(db.BigInteger, nullable=False, default=0)
    payment_cycle = db.Column(db.String(20), nullable=False, default="monthly")
    payment_day = db.Column(db.Integer, nullable=False)
    terms = db.Column(db.Text, nullable=False, default="")

    # ⚡ utility rates and the meter values at move-in
    electricity_rate = db.Column(db.BigInteger, nullable=False)
    water_rate = db.Column(db.BigInteger, nullable=False)
    electricity_start = db.Column(db.Integer, nullable=False, default=0)
    water_start = db.Column(db.Integer, nullable=False, default=0)

    # [{"name": "wifi", "price": 100000}, ...]
    service_fees = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)
    contract_file = db.Column(db.String(500))

    room = db.relationship("Room", backref=db.backref("contracts", lazy="select"))
    representative = db.relationship("Tenant", foreign_keys=[representative_id])
    tenants = db.relationship(
        "Tenant",
        secondary=contract_tenant,
        backref=db.backref("contracts", lazy="select"),
        lazy="select",
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def tenant_ids(self) -> list[int]:
        return [t.id for t in self.tenants]

    def is_current(self, today) -> bool:
        return self.status == "active" and self.start_date <= today <= self.end_date

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "room_id": self.room_id,
            "room_code": self.room.code if self.room else None,
            "tenant_ids": self.tenant_ids,
            "representative_id": self.representative_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "rent": self.rent,
            "deposit": self.deposit,
            "payment_cycle": self.payment_cycle,
            "payment_day": self.payment_day,
            "terms": self.terms,
            "electricity_rate": self.electricity_rate,
            "water_rate": self.water_rate,
            "electricity_start": self.electricity_start,
            "water_start": self.water_start,
            "service_fees": list(self.service_fees or []),
            "status": self.status,
            "contract_file": self.contract_file,
        }

    def __repr__(self):
        return f"<Contract {self.code}>"
