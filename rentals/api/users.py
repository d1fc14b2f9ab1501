# rentals/api/users.py
from flask import request
from flask_login import current_user, login_required
from sqlalchemy import or_

from rentals import accounts
from rentals.models import User
from rentals.schemas import ProfileUpdate, RegisterRequest, UserCreate, UserUpdate, parse_payload
from rentals.utils.authz import require_admin
from rentals.utils.pagination import paginate

from . import api_bp, get_or_404, ok


@api_bp.post("/auth/register")
def register():
    payload = parse_payload(RegisterRequest)
    user = accounts.register_user(payload.model_dump())
    return ok(user.to_dict(), "Account created", 201)


# ---- admin: user management -------------------------------------------------

@api_bp.get("/admin/users")
@login_required
def list_users():
    require_admin()
    q = User.query
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    if request.args.get("role"):
        q = q.filter(User.role == request.args["role"])
    items, pagination = paginate(q.order_by(User.created_at.desc()), lambda u: u.to_dict())
    return ok(items, pagination=pagination)


@api_bp.post("/admin/users")
@login_required
def create_user():
    require_admin()
    user = accounts.create_user(parse_payload(UserCreate).model_dump())
    return ok(user.to_dict(), "User created", 201)


@api_bp.put("/admin/users/<int:user_id>")
@login_required
def update_user(user_id):
    require_admin()
    user = get_or_404(User, user_id, "User not found")
    changes = parse_payload(UserUpdate).model_dump(exclude_unset=True)
    accounts.update_user(user, changes, acting_user=current_user)
    return ok(user.to_dict(), "User updated")


@api_bp.delete("/admin/users/<int:user_id>")
@login_required
def delete_user(user_id):
    require_admin()
    user = get_or_404(User, user_id, "User not found")
    accounts.delete_user(user, acting_user=current_user)
    return ok(None, "User deleted")


# ---- own profile ------------------------------------------------------------

@api_bp.get("/user/profile")
@login_required
def profile():
    return ok(current_user.to_dict())


@api_bp.put("/user/profile")
@login_required
def update_profile():
    changes = parse_payload(ProfileUpdate).model_dump(exclude_unset=True)
    user = accounts.update_profile(current_user, changes)
    return ok(user.to_dict(), "Profile updated")
