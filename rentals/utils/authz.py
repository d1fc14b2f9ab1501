# rentals/utils/authz.py
from flask_login import current_user

from rentals.errors import PermissionDenied


def is_admin(user=None) -> bool:
    user = user or current_user
    return bool(getattr(user, "is_authenticated", False)) and getattr(user, "role", None) == "admin"


def require_owner(building, user=None) -> None:
    """Only the building's owner (or an admin) may change it and its rooms."""
    user = user or current_user
    if is_admin(user):
        return
    if building is None or building.owner_id != getattr(user, "id", None):
        raise PermissionDenied()


def require_admin(user=None) -> None:
    if not is_admin(user):
        raise PermissionDenied("Administrator access required")
