"""
Application factory for the EagleKidz admin tool.

This module provides a function to create and configure the Flask
application that serves the admin pages. The app keeps no data of its
own: every page talks to the EagleKidz backend through an
:class:`~eaglekidz_admin.client.ApiClient`, which is built here from
configuration (or passed in, for tests) and stored on the app.
Individual blueprints for the different pages are registered inside
the factory to allow for modular development and unit testing.

Environment variables control the backend location and display time
zone. In production set ``EAGLEKIDZ_API_URL`` and ``SECRET_KEY``. The
defaults target a backend running locally on port 8080.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, tzinfo
from typing import Optional

from dateutil import tz as dateutil_tz  # type: ignore
from flask import Flask, current_app, request

from .client import DEFAULT_BASE_URL, ApiClient
from .errors import ValidationError

API_EXTENSION = "eaglekidz_api"
TIMEZONE_EXTENSION = "eaglekidz_timezone"


def _float_or_none(raw: Optional[str]) -> Optional[float]:
    return float(raw) if raw else None


def create_app(test_config: dict | None = None, api_client: ApiClient | None = None) -> Flask:
    """Create and configure a Flask application.

    Parameters
    ----------
    test_config: dict | None, optional
        Optional configuration overrides used when running tests.
    api_client: ApiClient | None, optional
        Backend client to use instead of one built from configuration.

    Returns
    -------
    Flask
        A configured Flask application instance.
    """
    app = Flask(__name__)

    # Default configuration. Override using environment variables or
    # by passing a ``test_config`` mapping.
    app.config.update(
        EAGLEKIDZ_API_URL=os.environ.get("EAGLEKIDZ_API_URL", DEFAULT_BASE_URL),
        EAGLEKIDZ_API_TIMEOUT=_float_or_none(os.environ.get("EAGLEKIDZ_API_TIMEOUT")),
        EAGLEKIDZ_TIMEZONE=os.environ.get("EAGLEKIDZ_TIMEZONE", "UTC"),
        SECRET_KEY=os.environ.get("SECRET_KEY", "please-change-this-secret-key"),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
    )

    if test_config:
        app.config.update(test_config)

    logging.getLogger(__name__).setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    zone = dateutil_tz.gettz(app.config["EAGLEKIDZ_TIMEZONE"])
    if zone is None:
        raise RuntimeError(f"Unknown time zone {app.config['EAGLEKIDZ_TIMEZONE']!r}")

    if api_client is None:
        api_client = ApiClient(
            app.config["EAGLEKIDZ_API_URL"],
            timeout=app.config["EAGLEKIDZ_API_TIMEOUT"],
        )
    app.extensions[API_EXTENSION] = api_client
    app.extensions[TIMEZONE_EXTENSION] = zone

    # Register custom error handlers
    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints. Importing here avoids circular imports.
    from .routes.status import status_bp
    from .routes.weeks import weeks_bp
    from .routes.reviews import reviews_bp
    from .routes.people import people_bp

    app.register_blueprint(status_bp, url_prefix="/api")
    app.register_blueprint(weeks_bp, url_prefix="/api")
    app.register_blueprint(reviews_bp, url_prefix="/api")
    app.register_blueprint(people_bp, url_prefix="/api")

    # Provide a simple health check route
    @app.route("/api/health")
    def health_check() -> dict[str, str]:
        """Return a simple health check response.

        This endpoint only reports that this app is up; use
        ``/api/backend/status`` to check the backend.
        """
        return {"status": "ok"}

    app.logger.info("EagleKidz admin using backend at %s", api_client.base_url)
    return app


def get_api() -> ApiClient:
    """Backend client of the current application."""
    return current_app.extensions[API_EXTENSION]


def display_tz() -> tzinfo:
    """Time zone in which dates are shown and calendar days compared."""
    return current_app.extensions[TIMEZONE_EXTENSION]


def today() -> date:
    return datetime.now(display_tz()).date()


def json_object() -> dict:
    """JSON body of the current request, which must be an object.

    A JSON ``null`` body counts as empty.
    """
    data = request.get_json()
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data
