# config.py
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(), override=False)  # picks up .env locally


# ---- base directories -------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent
INSTANCE_DIR = os.environ.get("FLASK_INSTANCE_PATH", str(BASE_DIR / "instance"))

# Default admin login (seeded by rentals/__init__.py)
DEFAULT_LOGIN_EMAIL = os.getenv("DEFAULT_LOGIN_EMAIL", "admin@rentals.vn")


# ---- tiny helpers -----------------------------------------------------------
def _to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on", "y"}


def _database_url() -> str:
    raw = os.getenv("DATABASE_URL", "").strip()

    # Render gives postgres://; normalize to postgresql+psycopg2://
    if raw.startswith("postgres://"):
        raw = raw.replace("postgres://", "postgresql+psycopg2://", 1)

    if not raw:
        raw = "sqlite:///" + str(Path(INSTANCE_DIR) / "rentals.db")
    return raw


# ----------------------------------------------------------------------------
class Config:
    """
    Base configuration loaded by the app factory via:
      app.config.from_object("config.Config")
    """

    # ------------ Core / Security ------------
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # ------------ Database ------------
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # ------------ Mail (notifications) ------------
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _to_bool(os.getenv("MAIL_USE_TLS", "1"))
    MAIL_USE_SSL = _to_bool(os.getenv("MAIL_USE_SSL", "0"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@rentals.vn")
    MAIL_SUPPRESS_SEND = _to_bool(os.getenv("MAIL_SUPPRESS_SEND", "0"), default=False)

    # ------------ Cookies ------------
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _to_bool(os.getenv("SESSION_COOKIE_SECURE", "0"))
    REMEMBER_COOKIE_SAMESITE = "Lax"

    # ------------ Schema ------------
    # off when the schema is managed with `flask db upgrade`
    AUTO_CREATE_TABLES = _to_bool(os.getenv("AUTO_CREATE_TABLES", "1"), default=True)

    # ------------ Seeded admin ------------
    DEFAULT_LOGIN_EMAIL = DEFAULT_LOGIN_EMAIL
    DEFAULT_LOGIN_PASSWORD = os.getenv("DEFAULT_LOGIN_PASSWORD", "admin123")

    # ------------ Listing / dashboard windows ------------
    PAGE_SIZE_DEFAULT = int(os.getenv("PAGE_SIZE_DEFAULT", "10"))
    PAGE_SIZE_MAX = int(os.getenv("PAGE_SIZE_MAX", "100"))
    DUE_SOON_DAYS = int(os.getenv("DUE_SOON_DAYS", "7"))
    EXPIRING_CONTRACT_DAYS = int(os.getenv("EXPIRING_CONTRACT_DAYS", "30"))

    # ------------ Accounts / self-service ------------
    ALLOW_REGISTRATION = _to_bool(os.getenv("ALLOW_REGISTRATION", "1"), default=True)
    TENANT_TOKEN_MAX_AGE = int(os.getenv("TENANT_TOKEN_MAX_AGE", str(7 * 24 * 3600)))
