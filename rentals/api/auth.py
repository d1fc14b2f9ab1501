# rentals/api/auth.py
from datetime import datetime

from flask import current_app
from flask_login import current_user, login_required, login_user, logout_user

from rentals.errors import AuthenticationError
from rentals.extensions import db
from rentals.models import User
from rentals.schemas import LoginRequest, parse_payload

from . import api_bp, ok


@api_bp.post("/auth/login")
def login():
    payload = parse_payload(LoginRequest)
    user = User.query.filter_by(email=payload.email).first()
    if not user or not user.check_password(payload.password):
        current_app.logger.info("api login failed for %s", payload.email)
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    login_user(user)
    user.last_login = datetime.utcnow()
    db.session.commit()
    return ok(user.to_dict(), "Logged in")


@api_bp.post("/auth/logout")
@login_required
def logout():
    logout_user()
    return ok(None, "Logged out")


@api_bp.get("/auth/me")
@login_required
def me():
    return ok(current_user.to_dict())
