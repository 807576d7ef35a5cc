"""Centralised error handling and custom exceptions.

This module defines the exception classes raised by the backend
client, the page services and the route handlers, and provides Flask
error handlers that serialise them into JSON responses. Every error
reaching the browser carries a short human-readable ``message`` that
the page shows as a notification; nothing here is fatal to the
application and the user may simply retry the action.
"""
from __future__ import annotations

from flask import jsonify
from marshmallow import ValidationError as SchemaError


class AdminError(Exception):
    """Base class of errors shown to the user as a notification."""

    code = "ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"code": self.code, "message": self.message}

    def to_response(self, status_code: int | None = None):
        return jsonify({"error": self.payload()}), status_code or self.http_status


class ValidationError(AdminError):
    """Raised when input validation fails.

    ``fields`` maps each offending field to its problem so the page can
    highlight it.
    """

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, fields: dict | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def payload(self) -> dict:
        return {**super().payload(), "fields": self.fields}


class NotFoundError(AdminError):
    """Raised when a requested resource cannot be found.

    Also used when an otherwise successful backend envelope carries no
    ``data``; the caller picks the message shown to the user.
    """

    code = "NOT_FOUND"
    http_status = 404


class ConflictError(AdminError):
    """Raised when a week window for the picked date already exists."""

    code = "CONFLICT"
    http_status = 409


class ApiError(AdminError):
    """Raised when a call to the EagleKidz backend fails.

    ``status_code`` is the backend's HTTP status, or ``None`` when the
    request never completed (connection refused, DNS failure and so on).
    ``message`` is the backend's own envelope message when one could be
    decoded, otherwise a generic text naming the status code.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None

    @property
    def code(self) -> str:  # type: ignore[override]
        return "BACKEND_UNAVAILABLE" if self.is_transport_error else "BACKEND_ERROR"

    @property
    def http_status(self) -> int:  # type: ignore[override]
        # Relay backend 4xx/5xx as-is; anything else is a bad gateway.
        if self.status_code is not None and 400 <= self.status_code <= 599:
            return self.status_code
        return 502


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""
    @app.errorhandler(AdminError)
    def handle_admin_error(err: AdminError):
        return err.to_response()

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        app.logger.warning("Backend call failed (%s): %s", err.status_code, err.message)
        return err.to_response()

    @app.errorhandler(SchemaError)
    def handle_schema_error(err: SchemaError):
        return ValidationError("Please check the highlighted fields.", err.messages).to_response()
