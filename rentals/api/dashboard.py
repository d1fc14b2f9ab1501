# rentals/api/dashboard.py
from flask_login import login_required

from rentals.dashboard import dashboard_stats

from . import api_bp, ok


@api_bp.get("/dashboard/stats")
@login_required
def stats():
    return ok(dashboard_stats())
