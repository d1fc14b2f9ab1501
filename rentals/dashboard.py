# rentals/dashboard.py
from datetime import date, datetime, timedelta

from flask import current_app
from sqlalchemy import func

from rentals.extensions import db
from rentals.models import Contract, Incident, Invoice, Payment, Room
from rentals.models.incident import OPEN_INCIDENT_STATUSES


def _revenue_between(start: datetime, end: datetime) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.paid_on >= start, Payment.paid_on < end)
        .scalar()
    )
    return int(total or 0)


def dashboard_stats(today=None) -> dict:
    today = today or date.today()
    due_soon_days = current_app.config.get("DUE_SOON_DAYS", 7)
    expiring_days = current_app.config.get("EXPIRING_CONTRACT_DAYS", 30)

    counts = dict(
        db.session.query(Room.status, func.count(Room.id)).group_by(Room.status).all()
    )

    month_start = datetime(today.year, today.month, 1)
    if today.month == 12:
        next_month = datetime(today.year + 1, 1, 1)
    else:
        next_month = datetime(today.year, today.month + 1, 1)
    year_start = datetime(today.year, 1, 1)
    next_year = datetime(today.year + 1, 1, 1)

    due_soon = Invoice.query.filter(
        Invoice.due_date <= today + timedelta(days=due_soon_days),
        Invoice.status.in_(("unpaid", "partially_paid", "overdue")),
    ).count()

    open_incidents = Incident.query.filter(Incident.status.in_(OPEN_INCIDENT_STATUSES)).count()

    expiring = Contract.query.filter(
        Contract.status == "active",
        Contract.end_date >= today,
        Contract.end_date <= today + timedelta(days=expiring_days),
    ).count()

    return {
        "total_rooms": sum(counts.values()),
        "vacant_rooms": counts.get("vacant", 0),
        "reserved_rooms": counts.get("reserved", 0),
        "occupied_rooms": counts.get("occupied", 0),
        "maintenance_rooms": counts.get("maintenance", 0),
        "revenue_month": _revenue_between(month_start, next_month),
        "revenue_year": _revenue_between(year_start, next_year),
        "invoices_due_soon": due_soon,
        "open_incidents": open_incidents,
        "contracts_expiring": expiring,
    }
