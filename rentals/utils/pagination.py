# rentals/utils/pagination.py
import math

from flask import current_app, request


def page_args(default_limit=None):
    """(page, limit) from the query string, clamped to sane bounds."""
    default = default_limit or current_app.config.get("PAGE_SIZE_DEFAULT", 10)
    maximum = current_app.config.get("PAGE_SIZE_MAX", 100)
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", default, type=int) or default
    return max(page, 1), min(max(limit, 1), maximum)


def _meta(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if total else 0,
    }


def paginate(query, serialize=None, default_limit=None):
    """Run ``query`` for the requested page; returns (items, pagination dict)."""
    page, limit = page_args(default_limit)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    if serialize is not None:
        rows = [serialize(r) for r in rows]
    return rows, _meta(page, limit, total)


def paginate_list(items, default_limit=None):
    """Same as paginate() for rows already built in Python."""
    page, limit = page_args(default_limit)
    start = (page - 1) * limit
    return items[start:start + limit], _meta(page, limit, len(items))
