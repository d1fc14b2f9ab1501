# rentals/errors.py
import traceback

from flask import current_app, jsonify
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from rentals.extensions import db


class RentalsError(Exception):
    """Base for errors that map onto an HTTP status at the request boundary."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class AuthenticationError(RentalsError):
    status_code = 401
    default_message = "Unauthorized"


class ValidationError(RentalsError):
    status_code = 400
    default_message = "Invalid data"


class PermissionDenied(RentalsError):
    status_code = 403
    default_message = "You do not have permission to modify this resource"


class NotFoundError(RentalsError):
    status_code = 404
    default_message = "Not found"


class InfrastructureError(RentalsError):
    status_code = 500
    default_message = "Database unavailable"


def first_schema_message(exc: SchemaError) -> str:
    """'field: message' for the first pydantic violation."""
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
    msg = err.get("msg", ValidationError.default_message)
    # custom validators raise ValueError; pydantic prefixes it
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{loc}: {msg}" if loc else msg


def _error_body(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _server_error(exc: Exception):
    """Generic 500; development mode adds the error and its traceback."""
    if current_app.debug:
        return jsonify({
            "success": False,
            "message": "Internal server error",
            "error": str(exc.__cause__ or exc),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }), 500
    return _error_body("Internal server error", 500)


def register_error_handlers(app):
    @app.errorhandler(RentalsError)
    def _rentals_error(exc: RentalsError):
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.error("%s: %s", type(exc).__name__, exc.message, exc_info=exc)
            return _server_error(exc)
        return _error_body(exc.message, exc.status_code)

    @app.errorhandler(SchemaError)
    def _schema_error(exc: SchemaError):
        return _error_body(first_schema_message(exc), 400)

    @app.errorhandler(OperationalError)
    def _db_down(exc: OperationalError):
        db.session.rollback()
        current_app.logger.exception("database error")
        return _server_error(exc)

    @app.errorhandler(404)
    def _not_found(exc):
        return _error_body("Not found", 404)

    @app.errorhandler(405)
    def _method_not_allowed(exc):
        return _error_body("Method not allowed", 405)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return _error_body(exc.description or exc.name, exc.code or 500)
        db.session.rollback()
        current_app.logger.exception("unhandled error: %s", exc)
        return _server_error(exc)
