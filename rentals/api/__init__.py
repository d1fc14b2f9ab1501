from flask import Blueprint, jsonify

from rentals.errors import NotFoundError
from rentals.extensions import db

# 1) Define the ONE blueprint object
api_bp = Blueprint("api_bp", __name__, url_prefix="/api")


def ok(data=None, message=None, status=200, pagination=None):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def get_or_404(model, ident, message="Not found"):
    obj = db.session.get(model, ident)
    if obj is None:
        raise NotFoundError(message)
    return obj


# 2) Now import routes so decorators attach to THIS api_bp
from . import (  # noqa: E402,F401
    auth,
    auto_invoice,
    buildings,
    contracts,
    dashboard,
    incidents,
    invoices,
    notifications,
    payments,
    public,
    readings,
    reports,
    rooms,
    tenant_portal,
    tenants,
    users,
)
