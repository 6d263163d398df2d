# Overview: Domain error types and the Flask handlers that turn them into JSON responses.

"""
Service Errors

WHY: Services raise typed errors; routes never build error responses by hand.
Each error carries an HTTP status and a stable machine-readable `code`
(an i18n key such as "errors.order.invalid_transition") that the admin UI
translates. The message is for logs and developers.

Unknown exceptions are logged with their stack and answered with a generic
500 body; their message is never sent to the client.
"""

from __future__ import annotations

from flask import jsonify
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException


class ServiceError(Exception):
    """Base class for errors a request handler may surface to a client."""

    status_code = 500
    default_code = "errors.common.internal_error"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, code: str | None = None, details: dict | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(ServiceError):
    """400: malformed or missing input."""
    status_code = 400
    default_code = "errors.common.validation_error"
    default_message = "Validation failed"


class UnauthorizedError(ServiceError):
    status_code = 401
    default_code = "errors.auth.unauthorized"
    default_message = "Authentication required"


class InvalidCredentialsError(UnauthorizedError):
    """Uniform login failure; never says which half was wrong."""
    default_code = "errors.auth.invalid_credentials"
    default_message = "Invalid email or password"


class ForbiddenError(ServiceError):
    status_code = 403
    default_code = "errors.common.forbidden"
    default_message = "Permission denied"


class NotFoundError(ServiceError):
    status_code = 404
    default_code = "errors.common.not_found"
    default_message = "Not found"


class ConflictError(ServiceError):
    """409: uniqueness or concurrent-state conflict."""
    status_code = 409
    default_code = "errors.common.conflict"
    default_message = "Conflict"


class InvalidOperationError(ServiceError):
    """400: the request is well formed but not allowed in the current state."""
    status_code = 400
    default_code = "errors.common.invalid_operation"
    default_message = "Invalid operation"


class InvalidTransitionError(InvalidOperationError):
    default_code = "errors.order.invalid_transition"
    default_message = "Invalid status transition"


class StoreUnavailableError(ServiceError):
    status_code = 503
    default_code = "errors.common.db_unavailable"
    default_message = "Database unavailable"


# =============================================================================
# FLASK HANDLERS
# =============================================================================

def register_error_handlers(app) -> None:
    """Attach JSON error handlers to the app."""

    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        if exc.status_code >= 500:
            app.logger.warning("Service error %s: %s", exc.code, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        # A concurrent insert slipped past a service-level uniqueness check
        from .extensions import db

        db.session.rollback()
        app.logger.warning("Integrity error while handling request: %s", exc.orig)
        err = ConflictError("Resource already exists or conflicts with existing data")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def handle_store_error(exc):
        app.logger.exception("Database error while handling request")
        err = StoreUnavailableError()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        # Werkzeug routing errors (404 unknown URL, 405 wrong method, 400 bad JSON)
        code = "errors.common.validation_error" if exc.code == 400 else f"errors.http.{exc.code}"
        return jsonify({"error": exc.description or exc.name, "code": code}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        app.logger.exception("Unhandled exception")
        err = ServiceError()
        return jsonify(err.to_dict()), 500
