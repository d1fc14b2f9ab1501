# rentals/api/notifications.py
from flask import request
from flask_login import current_user, login_required

from rentals import notifications as notification_service
from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import Building, Notification
from rentals.schemas import MarkRead, NotificationCreate, NotificationUpdate, parse_payload
from rentals.utils.pagination import paginate, paginate_list

from . import api_bp, get_or_404, ok


@api_bp.get("/thong-bao")
@login_required
def list_notifications():
    q = Notification.query
    if request.args.get("type"):
        q = q.filter(Notification.type == request.args["type"])
    q = q.order_by(Notification.sent_at.desc())
    items, pagination = paginate(q, lambda n: n.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/thong-bao")
@login_required
def create_notification():
    payload = parse_payload(NotificationCreate)
    if payload.building_id and db.session.get(Building, payload.building_id) is None:
        raise NotFoundError("Building not found")
    notification = notification_service.create_notification(payload.model_dump(), current_user.id)
    return ok(notification.to_dict(), "Notification sent", 201)


@api_bp.put("/thong-bao/<int:notification_id>")
@login_required
def update_notification(notification_id):
    notification = get_or_404(Notification, notification_id, "Notification not found")
    changes = parse_payload(NotificationUpdate).model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field != "building_id":
            continue
        setattr(notification, field, value)
    db.session.commit()
    return ok(notification.to_dict(), "Notification updated")


@api_bp.delete("/thong-bao/<int:notification_id>")
@login_required
def delete_notification(notification_id):
    notification = get_or_404(Notification, notification_id, "Notification not found")
    db.session.delete(notification)
    db.session.commit()
    return ok(None, "Notification deleted")


@api_bp.post("/thong-bao/<int:notification_id>/read")
@login_required
def read_notification(notification_id):
    notification = get_or_404(Notification, notification_id, "Notification not found")
    payload = parse_payload(MarkRead)
    notification_service.mark_read(notification, payload.tenant_id)
    return ok(notification.to_dict())


@api_bp.get("/notifications")
@login_required
def alerts():
    kind = request.args.get("type") or "all"
    if kind not in notification_service.FEED_TYPES:
        raise ValidationError(f"Unknown notification type: {kind}")
    items, pagination = paginate_list(notification_service.alerts_feed(kind))
    return ok(items, pagination=pagination)
