# rentals/notifications.py
from datetime import date, timedelta

from flask import current_app

from rentals.extensions import db
from rentals.mailer import send_email
from rentals.models import Contract, Incident, Invoice, Notification, Tenant
from rentals.models.incident import OPEN_INCIDENT_STATUSES

FEED_TYPES = ("all", "overdue_invoices", "expiring_contracts", "pending_incidents", "system")

_PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


def create_notification(data: dict, sender_id: int) -> Notification:
    """Store an announcement, then mail every recipient that has an address."""
    notification = Notification(
        title=data["title"],
        content=data["content"],
        type=data.get("type") or "general",
        sender_id=sender_id,
        building_id=data.get("building_id"),
        recipients=list(data.get("recipients") or []),
        rooms=list(data.get("rooms") or []),
        read_by=[],
    )
    db.session.add(notification)
    db.session.commit()

    notify_recipients(notification)
    return notification


def notify_recipients(notification: Notification) -> int:
    if not notification.recipients:
        return 0
    emails = [
        t.email
        for t in Tenant.query.filter(Tenant.id.in_(notification.recipients)).all()
        if t.email
    ]
    if not emails:
        return 0
    if not send_email(notification.title, emails, notification.content):
        current_app.logger.warning("notification %s stored but not mailed", notification.id)
        return 0
    return len(emails)


def mark_read(notification: Notification, tenant_id: int) -> bool:
    changed = notification.mark_read(tenant_id)
    if changed:
        db.session.commit()
    return changed


# ─── derived alerts feed ───────────────────────────────────────────────────

def overdue_invoice_alerts(today: date):
    invoices = (
        Invoice.query
        .filter(Invoice.due_date < today, Invoice.remaining > 0)
        .order_by(Invoice.due_date.asc())
        .all()
    )
    return [
        {
            "id": f"overdue_invoice_{inv.id}",
            "type": "overdue_invoice",
            "title": "Invoice overdue",
            "message": f"Invoice {inv.code} for room {inv.room.code} is past its due date",
            "data": {
                "invoice_id": inv.id,
                "code": inv.code,
                "room": inv.room.code,
                "tenant": inv.tenant.full_name,
                "due_date": inv.due_date.isoformat(),
                "remaining": inv.remaining,
            },
            "priority": "high",
            "created_at": inv.due_date.isoformat(),
        }
        for inv in invoices
    ]


def expiring_contract_alerts(today: date, within_days: int = 30):
    horizon = today + timedelta(days=within_days)
    contracts = (
        Contract.query
        .filter(Contract.status == "active", Contract.end_date >= today, Contract.end_date <= horizon)
        .order_by(Contract.end_date.asc())
        .all()
    )
    alerts = []
    for c in contracts:
        days_left = (c.end_date - today).days
        if days_left <= 7:
            priority = "high"
        elif days_left <= 15:
            priority = "medium"
        else:
            priority = "low"
        alerts.append({
            "id": f"expiring_contract_{c.id}",
            "type": "expiring_contract",
            "title": "Contract expiring soon",
            "message": f"Contract {c.code} for room {c.room.code} ends in {days_left} days",
            "data": {
                "contract_id": c.id,
                "code": c.code,
                "room": c.room.code,
                "tenant": c.representative.full_name if c.representative else None,
                "end_date": c.end_date.isoformat(),
                "days_left": days_left,
            },
            "priority": priority,
            "created_at": c.end_date.isoformat(),
        })
    return alerts


def pending_incident_alerts():
    incidents = Incident.query.filter(Incident.status.in_(OPEN_INCIDENT_STATUSES)).all()
    incidents.sort(key=lambda i: (_PRIORITY_RANK.get(i.priority, 2), -(i.reported_at.timestamp())))
    return [
        {
            "id": f"pending_incident_{i.id}",
            "type": "pending_incident",
            "title": "Incident needs attention",
            "message": f'Incident "{i.title}" in room {i.room.code} is {i.status.replace("_", " ")}',
            "data": {
                "incident_id": i.id,
                "title": i.title,
                "room": i.room.code,
                "tenant": i.tenant.full_name,
                "type": i.type,
                "priority": i.priority,
                "status": i.status,
                "reported_at": i.reported_at.isoformat(),
            },
            "priority": "critical" if i.priority == "urgent" else i.priority,
            "created_at": i.reported_at.isoformat(),
        }
        for i in incidents
    ]


def system_alerts(limit: int = 20):
    rows = (
        Notification.query
        .filter(Notification.type == "general")
        .order_by(Notification.sent_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": f"system_{n.id}",
            "type": "system",
            "title": n.title,
            "message": n.content,
            "data": {"notification_id": n.id},
            "priority": "medium",
            "created_at": n.sent_at.isoformat(),
        }
        for n in rows
    ]


def alerts_feed(kind: str = "all", today=None):
    today = today or date.today()
    within = current_app.config.get("EXPIRING_CONTRACT_DAYS", 30)
    if kind == "overdue_invoices":
        return overdue_invoice_alerts(today)
    if kind == "expiring_contracts":
        return expiring_contract_alerts(today, within)
    if kind == "pending_incidents":
        return pending_incident_alerts()
    if kind == "system":
        return system_alerts()

    items = (
        overdue_invoice_alerts(today)
        + expiring_contract_alerts(today, within)
        + pending_incident_alerts()
        + system_alerts(5)
    )
    items.sort(key=lambda a: a["created_at"], reverse=True)
    return items
