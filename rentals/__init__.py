# rentals/__init__.py
import logging
import uuid
from pathlib import Path

from flask import Flask, g, jsonify, redirect, request, url_for
from flask_wtf.csrf import generate_csrf
from sqlalchemy import text as sa_text
from werkzeug.middleware.proxy_fix import ProxyFix

from rentals.extensions import csrf, db, login_manager, mail, migrate


def create_app(test_config=None):
    app = Flask(
        __name__,
        instance_relative_config=True,
        template_folder="../templates",
    )

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # 1) Base config object (config.py at project root)
    app.config.from_object("config.Config")

    # 2) Instance overrides (instance/config.py) – safe if missing
    app.config.from_pyfile("config.py", silent=True)

    # 3) Environment overrides (e.g., FLASK_SQLALCHEMY_DATABASE_URI)
    app.config.from_prefixed_env()

    # 4) Explicit overrides (tests)
    if test_config:
        app.config.from_mapping(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Init extensions AFTER config
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    mail.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth_bp.login"

    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    # make {{ csrf_token() }} available
    @app.context_processor
    def inject_csrf():
        return {"csrf_token": generate_csrf}

    @login_manager.user_loader
    def load_user(user_id: str):
        from rentals.models import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def _unauthorized():
        # JSON clients get a 401, browsers go to the login page
        if request.blueprint == "api_bp" or request.path.startswith("/api/"):
            return jsonify({"message": "Unauthorized"}), 401
        return redirect(url_for("auth_bp.login", next=request.path))

    @app.before_request
    def _trace_in():
        g.reqid = str(uuid.uuid4())[:8]
        app.logger.info(
            "[%s] → %s %s ep=%s args=%s",
            g.reqid, request.method, request.path, request.endpoint, dict(request.args),
        )

    @app.after_request
    def _trace_out(resp):
        rid = getattr(g, "reqid", "????")
        loc = resp.headers.get("Location", "")
        if loc:
            app.logger.info("[%s] ← %s redirect to %s", rid, resp.status, loc)
        else:
            app.logger.info("[%s] ← %s", rid, resp.status)
        return resp

    from rentals.errors import register_error_handlers
    register_error_handlers(app)

    from rentals.api import api_bp
    from rentals.auth.routes import auth_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    # JSON API authenticates by session cookie and posts JSON, not forms
    csrf.exempt(api_bp)

    @app.route("/healthz")
    def healthz():
        try:
            db.session.execute(sa_text("SELECT 1"))
        except Exception:
            app.logger.exception("healthz: database check failed")
            return "db unavailable", 503
        return "ok", 200

    from rentals.cli import register_cli
    register_cli(app)

    # Create tables + seed default admin
    if app.config.get("AUTO_CREATE_TABLES", True):
        with app.app_context():
            import rentals.models  # noqa: F401  (register tables)
            db.create_all()
            _seed_default_admin(app)

    return app


def _seed_default_admin(app):
    from rentals.models import User

    email = (app.config.get("DEFAULT_LOGIN_EMAIL") or "").strip().lower()
    if not email:
        return
    if User.query.filter_by(email=email).first():
        return
    u = User(name="Admin", email=email, role="admin")
    u.set_password(app.config.get("DEFAULT_LOGIN_PASSWORD") or "admin123")
    db.session.add(u)
    db.session.commit()
    app.logger.info("seeded default admin %s", email)
