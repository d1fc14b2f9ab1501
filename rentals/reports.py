# rentals/reports.py
import csv
import io
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy import func

from rentals.errors import ValidationError
from rentals.extensions import db
from rentals.models import Contract, Payment, Room

REPORT_TYPES = ("revenue", "rooms", "contracts", "payments")


def report_window(start=None, end=None, today=None):
    """(start, end) dates; both default to the current calendar month."""
    today = today or date.today()
    if start is None or end is None:
        start = today.replace(day=1)
        end = start + relativedelta(months=1) - timedelta(days=1)
    if end < start:
        raise ValidationError("End date must not be before start date")
    return start, end


def _bounds(start: date, end: date):
    # the end day is included
    return datetime.combine(start, datetime.min.time()), datetime.combine(end + timedelta(days=1), datetime.min.time())


def _period(start, end):
    return {"start": start.isoformat(), "end": end.isoformat()}


def revenue_report(start: date, end: date) -> dict:
    lo, hi = _bounds(start, end)
    payments = (
        Payment.query
        .filter(Payment.paid_on >= lo, Payment.paid_on < hi)
        .order_by(Payment.paid_on)
        .all()
    )

    by_month = {}
    for p in payments:
        bucket = by_month.setdefault((p.paid_on.year, p.paid_on.month), {"total": 0, "count": 0})
        bucket["total"] += p.amount
        bucket["count"] += 1

    by_method = (
        db.session.query(Payment.method, func.sum(Payment.amount), func.count(Payment.id))
        .filter(Payment.paid_on >= lo, Payment.paid_on < hi)
        .group_by(Payment.method)
        .all()
    )

    return {
        "period": _period(start, end),
        "total_revenue": sum(p.amount for p in payments),
        "total_payments": len(payments),
        "revenue_by_month": [
            {"year": y, "month": m, **vals} for (y, m), vals in sorted(by_month.items())
        ],
        "revenue_by_method": [
            {"method": method, "total": int(total or 0), "count": count}
            for method, total, count in sorted(by_method, key=lambda row: row[0])
        ],
    }


def rooms_report() -> dict:
    counts = dict(db.session.query(Room.status, func.count(Room.id)).group_by(Room.status).all())
    total = sum(counts.values())
    occupied = counts.get("occupied", 0)
    return {
        "total_rooms": total,
        "occupied_rooms": occupied,
        "vacant_rooms": counts.get("vacant", 0),
        "reserved_rooms": counts.get("reserved", 0),
        "maintenance_rooms": counts.get("maintenance", 0),
        "occupancy_rate": round(occupied / total * 100, 2) if total else 0,
        "by_status": [{"status": s, "count": c} for s, c in sorted(counts.items())],
    }


def contracts_report(start: date, end: date) -> dict:
    lo, hi = _bounds(start, end)
    contracts = (
        Contract.query
        .filter(Contract.created_at >= lo, Contract.created_at < hi)
        .order_by(Contract.created_at.desc())
        .all()
    )

    stats = {}
    for c in contracts:
        bucket = stats.setdefault(c.status, {"count": 0, "total_rent": 0})
        bucket["count"] += 1
        bucket["total_rent"] += c.rent

    return {
        "period": _period(start, end),
        "total_contracts": len(contracts),
        "contracts": [
            {
                "code": c.code,
                "room": c.room.code if c.room else None,
                "representative": c.representative.full_name if c.representative else None,
                "start_date": c.start_date.isoformat(),
                "end_date": c.end_date.isoformat(),
                "rent": c.rent,
                "status": c.status,
            }
            for c in contracts
        ],
        "by_status": [{"status": s, **vals} for s, vals in sorted(stats.items())],
    }


def payments_report(start: date, end: date) -> dict:
    lo, hi = _bounds(start, end)
    payments = (
        Payment.query
        .filter(Payment.paid_on >= lo, Payment.paid_on < hi)
        .order_by(Payment.paid_on.desc())
        .all()
    )

    stats = {}
    for p in payments:
        bucket = stats.setdefault(p.method, {"total": 0, "count": 0})
        bucket["total"] += p.amount
        bucket["count"] += 1

    return {
        "period": _period(start, end),
        "total_payments": len(payments),
        "total_amount": sum(p.amount for p in payments),
        "payments": [
            {
                "paid_on": p.paid_on.date().isoformat(),
                "invoice": p.invoice.code if p.invoice else None,
                "amount": p.amount,
                "method": p.method,
                "recorded_by": p.recorded_by.name if p.recorded_by else None,
            }
            for p in payments
        ],
        "by_method": [{"method": m, **vals} for m, vals in sorted(stats.items())],
    }


def build_report(kind: str, start=None, end=None, today=None) -> dict:
    if kind not in REPORT_TYPES:
        raise ValidationError(f"Unknown report type: {kind}")
    if kind == "rooms":
        return rooms_report()
    start, end = report_window(start, end, today)
    if kind == "revenue":
        return revenue_report(start, end)
    if kind == "contracts":
        return contracts_report(start, end)
    return payments_report(start, end)


# rows written to the CSV export, per report type
_CSV_ROWS = {
    "revenue": lambda data: data["revenue_by_month"] + data["revenue_by_method"],
    "rooms": lambda data: data["by_status"],
    "contracts": lambda data: data["contracts"],
    "payments": lambda data: data["payments"],
}

_CSV_HEADERS = {
    "revenue": ["year", "month", "method", "total", "count"],
    "rooms": ["status", "count"],
    "contracts": ["code", "room", "representative", "start_date", "end_date", "rent", "status"],
    "payments": ["paid_on", "invoice", "amount", "method", "recorded_by"],
}


def report_csv(kind: str, data: dict) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=_CSV_HEADERS[kind], extrasaction="ignore")
    w.writeheader()
    for row in _CSV_ROWS[kind](data):
        w.writerow(row)
    return buf.getvalue()
