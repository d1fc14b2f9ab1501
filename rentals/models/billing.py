# rentals/models/billing.py
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import event
from sqlalchemy.orm import object_session

from rentals.billing.lifecycle import settle
from rentals.extensions import db

PAYMENT_METHODS = ("cash", "bank_transfer", "e_wallet")


class Invoice(db.Model):
    __tablename__ = "invoice"
    __table_args__ = (
        db.UniqueConstraint("contract_id", "month", "year", name="uq_invoice_contract_period"),
        db.Index("ix_invoice_period", "year", "month"),
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)

    contract_id = db.Column(db.Integer, db.ForeignKey("contract.id"), nullable=False, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey("room.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenant.id"), nullable=False, index=True)

    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)

    rent = db.Column(db.BigInteger, nullable=False, default=0)

    # ⚡ electricity
    electricity_start = db.Column(db.Integer, nullable=False, default=0)
    electricity_end = db.Column(db.Integer, nullable=False, default=0)
    electricity_usage = db.Column(db.Integer, nullable=False, default=0)
    electricity_rate = db.Column(db.BigInteger, nullable=False, default=0)
    electricity_cost = db.Column(db.BigInteger, nullable=False, default=0)

    # 💧 water
    water_start = db.Column(db.Integer, nullable=False, default=0)
    water_end = db.Column(db.Integer, nullable=False, default=0)
    water_usage = db.Column(db.Integer, nullable=False, default=0)
    water_rate = db.Column(db.BigInteger, nullable=False, default=0)
    water_cost = db.Column(db.BigInteger, nullable=False, default=0)

    service_fees = db.Column(db.JSON, nullable=False, default=list)

    total = db.Column(db.BigInteger, nullable=False, default=0)
    paid = db.Column(db.BigInteger, nullable=False, default=0)
    remaining = db.Column(db.BigInteger, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="unpaid", index=True)

    due_date = db.Column(db.Date, nullable=False, index=True)
    note = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contract = db.relationship("Contract", backref=db.backref("invoices", lazy="select"))
    room = db.relationship("Room")
    tenant = db.relationship("Tenant")
    payments = db.relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.paid_on",
    )

    def to_dict(self, with_payments: bool = False):
        data = {
            "id": self.id,
            "code": self.code,
            "contract_id": self.contract_id,
            "room_id": self.room_id,
            "room_code": self.room.code if self.room else None,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.full_name if self.tenant else None,
            "month": self.month,
            "year": self.year,
            "rent": self.rent,
            "electricity_start": self.electricity_start,
            "electricity_end": self.electricity_end,
            "electricity_usage": self.electricity_usage,
            "electricity_cost": self.electricity_cost,
            "water_start": self.water_start,
            "water_end": self.water_end,
            "water_usage": self.water_usage,
            "water_cost": self.water_cost,
            "service_fees": list(self.service_fees or []),
            "total": self.total,
            "paid": self.paid,
            "remaining": self.remaining,
            "status": self.status,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if with_payments:
            data["payments"] = [p.to_dict() for p in self.payments]
        return data

    def __repr__(self):
        return f"<Invoice {self.code} {self.status}>"


class Payment(db.Model):
    __tablename__ = "payment"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoice.id"), nullable=False, index=True)
    amount = db.Column(db.BigInteger, nullable=False)
    method = db.Column(db.String(20), nullable=False)

    # bank_transfer only
    transfer_bank = db.Column(db.String(100))
    transfer_ref = db.Column(db.String(100))

    paid_on = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    recorded_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    note = db.Column(db.Text)
    receipt_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    invoice = db.relationship("Invoice", back_populates="payments")
    recorded_by = db.relationship("User")

    def to_dict(self):
        transfer = None
        if self.method == "bank_transfer":
            transfer = {"bank": self.transfer_bank, "transaction_no": self.transfer_ref}
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "invoice_code": self.invoice.code if self.invoice else None,
            "amount": self.amount,
            "method": self.method,
            "transfer": transfer,
            "paid_on": self.paid_on.isoformat() if self.paid_on else None,
            "recorded_by_id": self.recorded_by_id,
            "note": self.note,
            "receipt_url": self.receipt_url,
        }

    def __repr__(self):
        return f"<Payment {self.amount} -> invoice {self.invoice_id}>"


# invoices flushed inside reference_date() settle against this day
REFERENCE_DATE_KEY = "rentals.reference_date"


@contextmanager
def reference_date(today=None):
    """
    Settle invoices flushed inside the block as of ``today``.

    Without it (or with ``today=None``) the flush hook uses the wall clock.
    Blocks nest; the outer date comes back on exit.
    """
    info = db.session.info
    previous = info.get(REFERENCE_DATE_KEY)
    if today is not None:
        info[REFERENCE_DATE_KEY] = today
    try:
        yield
    finally:
        if previous is None:
            info.pop(REFERENCE_DATE_KEY, None)
        else:
            info[REFERENCE_DATE_KEY] = previous


@event.listens_for(Invoice, "before_insert")
@event.listens_for(Invoice, "before_update")
def _settle_invoice(mapper, connection, target):
    # usage fields are stored clamped; remaining/status always follow total/paid
    target.electricity_usage = max(0, target.electricity_usage or 0)
    target.water_usage = max(0, target.water_usage or 0)
    session = object_session(target)
    today = session.info.get(REFERENCE_DATE_KEY) if session is not None else None
    settle(target, today or date.today())
