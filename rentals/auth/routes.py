# rentals/auth/routes.py
from datetime import datetime

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from rentals.auth.forms import LoginForm
from rentals.dashboard import dashboard_stats
from rentals.extensions import db
from rentals.models import Invoice, Room, User

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/")


def _safe_next(target):
    # only same-site relative paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return None


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    form = LoginForm()

    if request.method == "GET":
        form.email.data = current_app.config.get("DEFAULT_LOGIN_EMAIL", "")
        return render_template("auth/login.html", form=form)

    if not form.validate_on_submit():
        flash("Please correct the errors below.", "warning")
        return render_template("auth/login.html", form=form), 200

    email = (form.email.data or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(form.password.data or ""):
        flash("Invalid email or password.", "danger")
        return render_template("auth/login.html", form=form), 200
    if not user.is_active:
        flash("This account is disabled.", "danger")
        return render_template("auth/login.html", form=form), 200

    login_user(user, remember=bool(form.remember.data))
    user.last_login = datetime.utcnow()
    db.session.commit()
    current_app.logger.info("login: %s", user.email)
    return redirect(_safe_next(request.args.get("next")) or url_for("auth_bp.dashboard"))


@auth_bp.get("/logout")
@login_required
def logout():
    logout_user()
    flash("You have been signed out.", "info")
    return redirect(url_for("auth_bp.login"))


@auth_bp.get("/")
@login_required
def dashboard():
    stats = dashboard_stats()
    rooms = Room.query.order_by(Room.code.asc()).all()
    open_invoices = (
        Invoice.query
        .filter(Invoice.remaining > 0)
        .order_by(Invoice.due_date.asc())
        .limit(20)
        .all()
    )
    return render_template(
        "dashboard.html",
        stats=stats,
        rooms=rooms,
        invoices=open_invoices,
        user=current_user,
    )
