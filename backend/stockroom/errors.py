# Overview: JSON error envelope and app-wide error handlers, including database error classification.

"""
Error handling

Routes translate the service errors they expect into responses with
error_response(). Everything that escapes a route lands in the handlers
registered here:

- ValidationError -> 400, NotFoundError -> 404, ConflictError -> 409
- SQLAlchemyError -> classified by classify_db_error()
- BulkInsertError -> classified status, with the count already committed
- HTTPException -> its own status, JSON body
- anything else -> 500 "Internal server error" (logged with traceback)
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .validation import ConflictError, NotFoundError, ValidationError


def error_response(message: str, status: int, **extra):
    payload = {"success": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status


@dataclass(frozen=True)
class DatabaseErrorInfo:
    status: int
    kind: str
    message: str


def classify_db_error(exc: SQLAlchemyError) -> DatabaseErrorInfo:
    """Map a driver error onto a friendlier status/message pair."""
    if isinstance(exc, NoResultFound):
        return DatabaseErrorInfo(404, "not_found", "Record not found")

    if isinstance(exc, IntegrityError):
        detail = str(exc.orig).lower()
        if "unique" in detail or "duplicate" in detail:
            return DatabaseErrorInfo(409, "unique_constraint", "A record with the same unique value already exists")
        if "foreign key" in detail:
            return DatabaseErrorInfo(409, "foreign_key_constraint", "Record is referenced by other data")
        if "not null" in detail or "cannot be null" in detail:
            return DatabaseErrorInfo(400, "missing_value", "A required value is missing")
        return DatabaseErrorInfo(409, "integrity_error", "Data integrity violation")

    if isinstance(exc, OperationalError):
        return DatabaseErrorInfo(500, "database_unavailable", "Database unavailable")

    return DatabaseErrorInfo(500, "database_error", "Database error")


def register_error_handlers(app) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return error_response(str(e), 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return error_response(str(e), 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return error_response(str(e), 409)

    from .services.bulk import BulkInsertError

    @app.errorhandler(BulkInsertError)
    def handle_bulk_insert_error(e):
        return error_response(str(e), e.status, type=e.kind, insertedCount=e.inserted)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        info = classify_db_error(e)
        if info.status >= 500:
            current_app.logger.exception("Database error")
        else:
            current_app.logger.warning("Database constraint error: %s", info.kind)
        return error_response(info.message, info.status, type=info.kind)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return error_response("Internal server error", 500)
