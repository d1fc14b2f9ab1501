# rentals/utils/tokens.py
from flask import current_app
from itsdangerous import BadSignature, URLSafeTimedSerializer


def _s(salt: str):
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=salt)


def make_tenant_token(tenant_id: int) -> str:
    return _s("tenant-login").dumps({"tid": tenant_id})


def load_tenant_token(token: str) -> int | None:
    max_age = current_app.config.get("TENANT_TOKEN_MAX_AGE", 7 * 24 * 3600)
    try:
        data = _s("tenant-login").loads(token, max_age=max_age)
        return int(data.get("tid"))
    except (BadSignature, TypeError, ValueError):
        return None


def make_invoice_token(invoice_id: int) -> str:
    return _s("public-invoice").dumps({"iid": invoice_id})


def load_invoice_token(token: str) -> int | None:
    """Public invoice links do not expire; the signature is the only check."""
    try:
        data = _s("public-invoice").loads(token)
        return int(data.get("iid"))
    except (BadSignature, TypeError, ValueError):
        return None
